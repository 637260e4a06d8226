from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.features.waitlist.schemas.waitlist import WaitlistEntryOut
from app.platform.schemas import Page


class ReviewUpdateRequest(BaseModel):
    """
    Partial update of an entry's review fields. Only keys present in the body
    are applied, so an explicit null clears a field while an absent key leaves
    it untouched.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field("", description="Waitlist entry id")
    review_status: Any = None
    admin_notes: Any = None
    vendor_queue_override: Any = None
    reviewed_by: Any = None


class WaitlistPage(Page[WaitlistEntryOut]):
    pass
