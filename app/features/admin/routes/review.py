from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.admin.schemas.review import ReviewUpdateRequest, WaitlistPage
from app.features.admin.services.review import DEFAULT_LIMIT, ROLES, AdminReviewService
from app.features.admin.utils.csv_export import entries_to_csv
from app.features.waitlist.schemas.waitlist import WaitlistEntryOut
from app.features.waitlist.utils.emailer import send_test_email
from app.features.waitlist.utils.normalizers import query_bool
from app.platform.db.session import get_db
from app.platform.logger import get_logger
from app.platform.response import api_response, csv_response
from app.platform.services.email import EmailDeliveryError

router = APIRouter(tags=["Admin - Review"])
logger = get_logger(__name__)


@router.get("/list", summary="List waitlist entries for review")
async def list_entries(
    role: str = Query("all", description="all, consumer or vendor"),
    status_filter: str = Query("all", alias="status", description="all or a review status"),
    q: str = Query("", description="Name or email contains"),
    postcode: str = Query("", description="Postcode area contains"),
    has_instagram: Optional[str] = Query(None, description="true or false"),
    compliance: str = Query("", description="Compliance item the vendor ticked"),
    min_score: Optional[int] = Query(None, description="Minimum vendor priority score"),
    limit: int = Query(DEFAULT_LIMIT),
    offset: int = Query(0),
    db: AsyncSession = Depends(get_db),
):
    service = AdminReviewService(db)
    entries, total, limit, offset = await service.list_entries(
        role=role,
        review_status=status_filter,
        q=q,
        postcode=postcode,
        has_instagram=query_bool(has_instagram),
        compliance=compliance,
        min_score=min_score,
        limit=limit,
        offset=offset,
    )

    return api_response(
        data=WaitlistPage(
            rows=[WaitlistEntryOut.model_validate(entry) for entry in entries],
            total=total,
            limit=limit,
            offset=offset,
        ),
        message="Waitlist entries retrieved",
    )


@router.patch("/update", summary="Update an entry's review fields")
async def update_entry(payload: ReviewUpdateRequest, db: AsyncSession = Depends(get_db)):
    service = AdminReviewService(db)
    entry = await service.update_entry(payload)

    return api_response(
        data=WaitlistEntryOut.model_validate(entry),
        message="Waitlist entry updated",
    )


@router.get("/export", summary="Download the waitlist as CSV")
async def export_entries(
    role: str = Query("", description="consumer or vendor; empty exports everyone"),
    db: AsyncSession = Depends(get_db),
):
    role = (role or "").strip().lower()
    service = AdminReviewService(db)
    entries = await service.export_entries(role)

    filename = f"peerplates_waitlist_{role if role in ROLES else 'all'}.csv"
    logger.info(f"Exporting {len(entries)} waitlist entries to {filename}")

    return csv_response(entries_to_csv(entries), filename)


@router.get("/email-test", summary="Send a test email")
async def email_test(to: str = Query("", description="Recipient address")):
    to = to.strip()
    if not to:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing ?to=")

    try:
        result = send_test_email(to)
    except (EmailDeliveryError, ValueError) as exc:
        logger.error(f"Test email to {to} failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Email test failed: {exc}"
        )

    return api_response(data=result, message=f"Test email sent to {to}")
