from datetime import datetime, timezone
from typing import Any, Optional

from email_validator import EmailNotValidError, validate_email
from fastapi import HTTPException, UploadFile, status
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.waitlist.models.waitlist import WaitlistEntry, WaitlistRole
from app.features.waitlist.questions import CUISINE_KEYS, MAX_CUISINES
from app.features.waitlist.schemas.waitlist import SignupForm
from app.features.waitlist.utils.emailer import referral_link
from app.features.waitlist.utils.normalizers import (
    clean_code,
    clean_ig_handle,
    clean_text,
    normalize_bool,
    normalize_yes_no,
    string_list,
)
from app.features.waitlist.utils.referral_code_generator import (
    generate_fallback_code,
    generate_referral_code,
)
from app.features.waitlist.utils.vendor_priority import vendor_priority_score
from app.platform.config import settings
from app.platform.logger import get_logger
from app.platform.utils.file_upload import delete_certificate, save_certificate

logger = get_logger(__name__)

REFERRAL_CODE_LENGTH = 8
QUEUE_CODE_LENGTH = 10
CODE_ATTEMPTS = 10

# Stand-in for "no override" so overridden vendors sort first
NO_OVERRIDE = 2**31 - 1


def bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def database_error(exc: SQLAlchemyError, action: str) -> HTTPException:
    logger.exception(f"Database error while {action}", exc_info=exc)
    message = str(getattr(exc, "orig", None) or exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


def signed_up_no_later(entry: WaitlistEntry):
    """Entries created before `entry`, or at the same instant with an id no greater."""
    return or_(
        WaitlistEntry.created_at < entry.created_at,
        and_(WaitlistEntry.created_at == entry.created_at, WaitlistEntry.id <= entry.id),
    )


def ranking_ahead_of(entry: WaitlistEntry):
    """
    SQL condition matching entries of the same role ranked at or ahead of `entry`.

    Vendors rank by manual override (unset last), then priority score, then
    signup order; consumers by referral points, then signup order.
    """
    signed_up = signed_up_no_later(entry)

    if entry.role == WaitlistRole.VENDOR:
        override = func.coalesce(WaitlistEntry.vendor_queue_override, NO_OVERRIDE)
        entry_override = (
            entry.vendor_queue_override if entry.vendor_queue_override is not None else NO_OVERRIDE
        )
        entry_score = entry.vendor_priority_score or 0
        ahead = or_(
            override < entry_override,
            and_(override == entry_override, WaitlistEntry.vendor_priority_score > entry_score),
            and_(
                override == entry_override,
                WaitlistEntry.vendor_priority_score == entry_score,
                signed_up,
            ),
        )
    else:
        entry_points = entry.referral_points or 0
        ahead = or_(
            WaitlistEntry.referral_points > entry_points,
            and_(WaitlistEntry.referral_points == entry_points, signed_up),
        )

    return and_(WaitlistEntry.role == entry.role, ahead)


class WaitlistService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Lookups ─────────────────────────────────

    async def get_by_id(self, entry_id: str) -> Optional[WaitlistEntry]:
        result = await self.db.execute(select(WaitlistEntry).where(WaitlistEntry.id == entry_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[WaitlistEntry]:
        result = await self.db.execute(
            select(WaitlistEntry).where(WaitlistEntry.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_by_queue_code(self, queue_code: str) -> Optional[WaitlistEntry]:
        result = await self.db.execute(
            select(WaitlistEntry).where(WaitlistEntry.queue_code == queue_code)
        )
        return result.scalar_one_or_none()

    async def signup_position(self, entry: WaitlistEntry) -> int:
        """1-based place of the entry among its role in signup order."""
        position = await self.db.scalar(
            select(func.count(WaitlistEntry.id)).where(
                WaitlistEntry.role == entry.role, signed_up_no_later(entry)
            )
        )
        return position or 1

    async def queue_position(self, entry: WaitlistEntry) -> int:
        """1-based rank of the entry within its role, as the review list orders it."""
        position = await self.db.scalar(
            select(func.count(WaitlistEntry.id)).where(ranking_ahead_of(entry))
        )
        return position or 1

    async def get_queue_position(self, entry_id: str) -> dict:
        entry_id = (entry_id or "").strip()
        if not entry_id:
            raise bad_request("Missing id")

        try:
            entry = await self.get_by_id(entry_id)
            if not entry:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
            position = await self.signup_position(entry)
        except SQLAlchemyError as exc:
            raise database_error(exc, "computing queue position")

        return {"id": entry.id, "role": entry.role, "position": position}

    async def get_queue_status(self, code: str) -> dict:
        queue_code = clean_code(code)
        if not queue_code:
            raise bad_request("Please enter your code.")

        try:
            entry = await self.get_by_queue_code(queue_code)
            if not entry:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
            position = await self.queue_position(entry)
        except SQLAlchemyError as exc:
            raise database_error(exc, "looking up queue status")

        return {
            "email": entry.email,
            "role": entry.role,
            "review_status": entry.review_status,
            "position": position,
            "score": entry.score,
            "created_at": entry.created_at,
            "referral_code": entry.referral_code,
            "referral_link": referral_link(entry.referral_code),
        }

    # ── Signup ──────────────────────────────────

    async def signup(
        self, form: SignupForm, certificate: Optional[UploadFile] = None
    ) -> WaitlistEntry:
        if (form.hp or "").strip():
            raise bad_request("Bot detected.")

        role_raw = form.role.strip().lower()
        if role_raw not in {r.value for r in WaitlistRole}:
            raise bad_request("Invalid role.")
        role = WaitlistRole(role_raw)

        full_name = form.full_name.strip()
        if not full_name:
            raise bad_request("Full name is required.")

        email = form.email.strip().lower()
        if not email:
            raise bad_request("Email is required.")
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            raise bad_request("Please enter a valid email address.")

        accepted_privacy = normalize_bool(form.accepted_privacy)
        if not accepted_privacy:
            raise bad_request("Privacy/Terms acceptance is required.")
        marketing_consent = normalize_bool(form.marketing_consent)

        answers, is_student, university = self.normalize_answers(form.answers)
        phone = clean_text(form.phone)

        try:
            if await self.get_by_email(email):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="This email is already on the waitlist.",
                )
            referrer = await self.resolve_referrer(form.ref, email)
            referral_code = await self.unique_code(WaitlistEntry.referral_code, REFERRAL_CODE_LENGTH)
            queue_code = await self.unique_code(WaitlistEntry.queue_code, QUEUE_CODE_LENGTH)
        except SQLAlchemyError as exc:
            raise database_error(exc, "preparing signup")

        certificate_url = None
        if certificate is not None and certificate.filename and role == WaitlistRole.VENDOR:
            certificate_url = await save_certificate(certificate, queue_code)

        entry = WaitlistEntry(
            role=role,
            full_name=full_name,
            email=email,
            phone=phone,
            is_student=is_student,
            university=university,
            answers=answers,
            postcode_area=clean_text(answers.get("postcode_area")),
            instagram_handle=clean_text(answers.get("ig_handle")),
            compliance_readiness=string_list(answers.get("compliance_readiness")) or None,
            top_cuisines=(
                string_list(answers.get("top_cuisines"))
                or string_list(answers.get("sell_categories"))
                or None
            ),
            dietary_preferences=string_list(answers.get("dietary_preferences")) or None,
            referral_code=referral_code,
            referred_by=referrer.referral_code if referrer else None,
            queue_code=queue_code,
            vendor_priority_score=vendor_priority_score(answers) if role == WaitlistRole.VENDOR else 0,
            certificate_url=certificate_url,
            accepted_privacy=accepted_privacy,
            consented_at=datetime.now(timezone.utc),
            marketing_consent=marketing_consent,
        )
        self.db.add(entry)

        try:
            if referrer:
                await self.db.execute(
                    update(WaitlistEntry)
                    .where(WaitlistEntry.id == referrer.id)
                    .values(
                        referrals_count=WaitlistEntry.referrals_count + 1,
                        referral_points=WaitlistEntry.referral_points
                        + settings.REFERRAL_POINTS_PER_SIGNUP,
                    )
                    .execution_options(synchronize_session=False)
                )
            await self.db.commit()
            await self.db.refresh(entry)
        except IntegrityError as exc:
            await self.db.rollback()
            if certificate_url:
                delete_certificate(certificate_url)
            logger.warning(f"Duplicate signup rejected for {email}: {exc.orig}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This email is already on the waitlist.",
            )
        except SQLAlchemyError as exc:
            await self.db.rollback()
            if certificate_url:
                delete_certificate(certificate_url)
            raise database_error(exc, "inserting waitlist entry")

        logger.info(
            f"Waitlist signup stored: id={entry.id} role={entry.role.value} "
            f"score={entry.vendor_priority_score} referred_by={entry.referred_by}"
        )
        return entry

    def normalize_answers(
        self, raw: dict[str, Any]
    ) -> tuple[dict[str, Any], Optional[bool], Optional[str]]:
        """
        Validates the questionnaire answers and rewrites the Yes/No and handle
        fields into their canonical form. Also returns the student flag and
        university, which are stored as their own columns.
        """
        answers = dict(raw or {})

        for key in CUISINE_KEYS:
            value = answers.get(key)
            if isinstance(value, list) and len(value) > MAX_CUISINES:
                raise bad_request(f"Please select up to {MAX_CUISINES} cuisines.")

        is_student = normalize_yes_no(answers.get("is_student"))
        university = clean_text(answers.get("university"))
        if is_student is False:
            university = None

        has_food_ig = normalize_yes_no(answers.get("has_food_ig"))
        ig_handle = clean_ig_handle(
            answers.get("ig_handle") or answers.get("instagram_handle") or answers.get("instagram")
        )
        if has_food_ig is True and not ig_handle:
            raise bad_request("Please provide your IG handle.")

        if has_food_ig is not None:
            answers["has_food_ig"] = "Yes" if has_food_ig else "No"
        if ig_handle:
            answers["ig_handle"] = ig_handle
        if has_food_ig is False:
            answers["ig_handle"] = ""

        return answers, is_student, university

    async def resolve_referrer(self, ref: Optional[str], email: str) -> Optional[WaitlistEntry]:
        """A referral only counts if the code exists and does not belong to the new signup's email."""
        code = clean_code(ref)
        if not code:
            return None

        result = await self.db.execute(
            select(WaitlistEntry).where(WaitlistEntry.referral_code == code)
        )
        referrer = result.scalar_one_or_none()
        if not referrer or (referrer.email or "").lower() == email:
            logger.info(f"Ignoring referral code {code!r} for {email}")
            return None
        return referrer

    async def unique_code(self, column, length: int) -> str:
        for _ in range(CODE_ATTEMPTS):
            code = generate_referral_code(length)
            taken = await self.db.scalar(select(WaitlistEntry.id).where(column == code))
            if not taken:
                return code
        return generate_fallback_code(length)
