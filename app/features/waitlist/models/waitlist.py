from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
    Text,
)
from sqlalchemy import Enum as SQLEnum

from app.platform.db.base import BaseModel


class WaitlistRole(str, Enum):
    CONSUMER = "consumer"
    VENDOR = "vendor"


class ReviewStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    REJECTED = "rejected"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class WaitlistEntry(BaseModel):
    __tablename__ = "waitlist_entries"
    __table_args__ = (
        CheckConstraint(
            "vendor_priority_score >= 0 AND vendor_priority_score <= 10",
            name="ck_waitlist_vendor_priority_score_range",
        ),
    )

    role = Column(
        SQLEnum(WaitlistRole, name="waitlist_role", values_callable=_enum_values),
        nullable=False,
        index=True,
    )
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50), nullable=True)

    is_student = Column(Boolean, nullable=True)
    university = Column(String(255), nullable=True)

    answers = Column(JSON, nullable=False, default=dict)

    # Clean columns extracted from answers for filtering and export
    postcode_area = Column(String(32), nullable=True)
    instagram_handle = Column(String(255), nullable=True)
    compliance_readiness = Column(JSON, nullable=True)
    top_cuisines = Column(JSON, nullable=True)
    dietary_preferences = Column(JSON, nullable=True)

    referral_code = Column(String(16), unique=True, nullable=False, index=True)
    referred_by = Column(String(16), nullable=True, index=True)
    referrals_count = Column(Integer, nullable=False, default=0, server_default="0")
    referral_points = Column(Integer, nullable=False, default=0, server_default="0")

    queue_code = Column(String(16), unique=True, nullable=False, index=True)

    vendor_priority_score = Column(Integer, nullable=False, default=0, server_default="0")
    vendor_queue_override = Column(Integer, nullable=True)
    certificate_url = Column(String(512), nullable=True)

    review_status = Column(
        SQLEnum(ReviewStatus, name="review_status", values_callable=_enum_values),
        nullable=False,
        default=ReviewStatus.PENDING,
        server_default=ReviewStatus.PENDING.value,
        index=True,
    )
    admin_notes = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(String(255), nullable=True)

    accepted_privacy = Column(Boolean, nullable=False, default=False)
    consented_at = Column(DateTime(timezone=True), nullable=True)
    marketing_consent = Column(Boolean, nullable=False, default=False)

    @property
    def score(self) -> int:
        """Ranking score shown to admins: vendor priority for vendors, referral points for consumers."""
        if self.role == WaitlistRole.VENDOR:
            return self.vendor_priority_score or 0
        return self.referral_points or 0

    def __repr__(self) -> str:
        return (
            f"<WaitlistEntry(id='{self.id}', role='{self.role}', email='{self.email}', "
            f"review_status='{self.review_status}')>"
        )
