import math
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy import String, asc, cast, desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.admin.schemas.review import ReviewUpdateRequest
from app.features.waitlist.models.waitlist import ReviewStatus, WaitlistEntry, WaitlistRole
from app.features.waitlist.services.waitlist import database_error
from app.platform.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 200
DEFAULT_REVIEWER = "admin"

ROLES = {role.value for role in WaitlistRole}
STATUSES = {review_status.value for review_status in ReviewStatus}


def parse_queue_override(value: Any) -> Optional[int]:
    """null and "" clear the override; anything else must read as a number."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("boolean is not a queue position")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        number = float(text)
    if not math.isfinite(number):
        raise ValueError("queue position must be finite")
    return int(number)


class AdminReviewService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _filtered(
        self,
        query,
        role: str,
        review_status: str,
        q: str,
        postcode: str,
        has_instagram: Optional[bool],
        compliance: str,
        min_score: Optional[int],
    ):
        if role in ROLES:
            query = query.where(WaitlistEntry.role == WaitlistRole(role))

        if review_status != "all":
            if review_status not in STATUSES:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid status. Use all|pending|reviewed|approved|rejected",
                )
            query = query.where(WaitlistEntry.review_status == ReviewStatus(review_status))

        if q:
            pattern = f"%{q.lower()}%"
            query = query.where(
                or_(
                    func.lower(WaitlistEntry.full_name).like(pattern),
                    func.lower(WaitlistEntry.email).like(pattern),
                )
            )

        if postcode:
            query = query.where(func.lower(WaitlistEntry.postcode_area).like(f"%{postcode.lower()}%"))

        if has_instagram is True:
            query = query.where(
                WaitlistEntry.instagram_handle.isnot(None), WaitlistEntry.instagram_handle != ""
            )
        elif has_instagram is False:
            query = query.where(
                or_(WaitlistEntry.instagram_handle.is_(None), WaitlistEntry.instagram_handle == "")
            )

        if compliance:
            # JSON arrays are stored as text; match the quoted item
            query = query.where(
                cast(WaitlistEntry.compliance_readiness, String).like(f'%"{compliance}"%')
            )

        if min_score is not None:
            query = query.where(WaitlistEntry.vendor_priority_score >= min_score)

        return query

    @staticmethod
    def _ordering(role: str) -> list:
        if role == WaitlistRole.VENDOR.value:
            return [
                asc(WaitlistEntry.vendor_queue_override).nulls_last(),
                desc(WaitlistEntry.vendor_priority_score),
                asc(WaitlistEntry.created_at),
                asc(WaitlistEntry.id),
            ]
        if role == WaitlistRole.CONSUMER.value:
            return [
                desc(WaitlistEntry.referral_points),
                asc(WaitlistEntry.created_at),
                asc(WaitlistEntry.id),
            ]
        return [desc(WaitlistEntry.created_at), desc(WaitlistEntry.id)]

    async def list_entries(
        self,
        role: str = "all",
        review_status: str = "all",
        q: str = "",
        postcode: str = "",
        has_instagram: Optional[bool] = None,
        compliance: str = "",
        min_score: Optional[int] = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> tuple[list[WaitlistEntry], int, int, int]:
        role = (role or "all").strip().lower()
        review_status = (review_status or "all").strip().lower()
        limit = max(1, min(limit, MAX_LIMIT))
        offset = max(offset, 0)

        filters = dict(
            role=role,
            review_status=review_status,
            q=(q or "").strip(),
            postcode=(postcode or "").strip(),
            has_instagram=has_instagram,
            compliance=(compliance or "").strip(),
            min_score=min_score,
        )

        try:
            total = await self.db.scalar(
                self._filtered(select(func.count(WaitlistEntry.id)), **filters)
            )
            result = await self.db.execute(
                self._filtered(select(WaitlistEntry), **filters)
                .order_by(*self._ordering(role))
                .offset(offset)
                .limit(limit)
            )
            entries = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise database_error(exc, "listing waitlist entries")

        return entries, total or 0, limit, offset

    async def update_entry(self, payload: ReviewUpdateRequest) -> WaitlistEntry:
        entry_id = (payload.id or "").strip()
        if not entry_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing id")

        provided = payload.model_fields_set
        has_status = "review_status" in provided
        has_notes = "admin_notes" in provided
        has_override = "vendor_queue_override" in provided

        new_status = ""
        if has_status:
            if payload.review_status is not None and not isinstance(payload.review_status, str):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid review_status. Use pending|reviewed|approved|rejected",
                )
            new_status = (payload.review_status or "").strip().lower()
            if not new_status:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="review_status cannot be empty when provided",
                )
            if new_status not in STATUSES:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid review_status. Use pending|reviewed|approved|rejected",
                )

        override = None
        if has_override:
            try:
                override = parse_queue_override(payload.vendor_queue_override)
            except (TypeError, ValueError):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="vendor_queue_override must be a number or null",
                )

        try:
            result = await self.db.execute(select(WaitlistEntry).where(WaitlistEntry.id == entry_id))
            entry = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise database_error(exc, "loading waitlist entry")
        if not entry:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

        changed = []
        if has_notes:
            # Anything but text clears the note
            notes = payload.admin_notes if isinstance(payload.admin_notes, str) else ""
            entry.admin_notes = notes.strip() or None
            changed.append("admin_notes")

        if has_status:
            entry.review_status = ReviewStatus(new_status)
            reviewer = payload.reviewed_by if isinstance(payload.reviewed_by, str) else ""
            entry.reviewed_by = reviewer.strip() or DEFAULT_REVIEWER
            entry.reviewed_at = (
                datetime.now(timezone.utc) if entry.review_status != ReviewStatus.PENDING else None
            )
            changed.append("review_status")

        # The manual queue position only exists for vendors
        if has_override and entry.role == WaitlistRole.VENDOR:
            entry.vendor_queue_override = override
            changed.append("vendor_queue_override")

        if not changed:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=(
                    "No valid fields to update (send admin_notes, review_status, "
                    "and/or vendor_queue_override)."
                ),
            )

        try:
            await self.db.commit()
            await self.db.refresh(entry)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise database_error(exc, "updating waitlist entry")

        logger.info(f"Admin updated entry {entry.id}: {', '.join(changed)}")
        return entry

    async def export_entries(self, role: str = "") -> list[WaitlistEntry]:
        role = (role or "").strip().lower()
        query = select(WaitlistEntry).order_by(desc(WaitlistEntry.created_at), desc(WaitlistEntry.id))
        if role in ROLES:
            query = query.where(WaitlistEntry.role == WaitlistRole(role))

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as exc:
            raise database_error(exc, "exporting waitlist entries")
        return list(result.scalars().all())
