from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.features.waitlist.models.waitlist import ReviewStatus, WaitlistRole


class SignupForm(BaseModel):
    """
    Raw signup submission, JSON body or multipart form fields.
    Values are kept loose here; the waitlist service owns validation so it can
    answer with the form's own error messages.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    role: str = ""
    full_name: str = Field("", validation_alias=AliasChoices("fullName", "full_name"))
    email: str = ""
    phone: Optional[str] = None
    ref: Optional[str] = Field(None, validation_alias=AliasChoices("ref", "referred_by", "referredBy"))
    accepted_privacy: Any = None
    marketing_consent: Any = None
    hp: Optional[str] = None
    answers: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("role", "full_name", "email", mode="before")
    @classmethod
    def _none_to_blank(cls, value):
        return "" if value is None else str(value)

    @field_validator("phone", "ref", "hp", mode="before")
    @classmethod
    def _stringify(cls, value):
        return None if value is None else str(value)

    @field_validator("answers", mode="before")
    @classmethod
    def _answers_dict(cls, value):
        return value if isinstance(value, dict) else {}


class SignupOut(BaseModel):
    id: str
    referral_code: str
    queue_code: str
    referral_link: Optional[str] = None


class QueuePositionOut(BaseModel):
    id: str
    role: WaitlistRole
    position: Optional[int] = None


class QueueStatusOut(BaseModel):
    email: str
    role: WaitlistRole
    review_status: ReviewStatus
    position: Optional[int] = None
    score: int
    created_at: datetime
    referral_code: Optional[str] = None
    referral_link: Optional[str] = None


class QuestionOut(BaseModel):
    key: str
    label: str
    type: str
    required: bool
    options: Optional[List[str]] = None
    helper: Optional[str] = None
    max_selected: Optional[int] = None
    required_when: Optional[Dict[str, str]] = None


class WaitlistEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    role: WaitlistRole
    full_name: str
    email: str
    phone: Optional[str] = None
    is_student: Optional[bool] = None
    university: Optional[str] = None
    answers: Dict[str, Any] = Field(default_factory=dict)

    postcode_area: Optional[str] = None
    instagram_handle: Optional[str] = None
    compliance_readiness: Optional[List[str]] = None
    top_cuisines: Optional[List[str]] = None
    dietary_preferences: Optional[List[str]] = None

    referral_code: Optional[str] = None
    referred_by: Optional[str] = None
    referrals_count: int = 0
    referral_points: int = 0
    queue_code: Optional[str] = None

    vendor_priority_score: int = 0
    vendor_queue_override: Optional[int] = None
    certificate_url: Optional[str] = None

    review_status: ReviewStatus
    admin_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None

    score: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
