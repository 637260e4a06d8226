import json
from typing import Optional, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from app.features.waitlist.models.waitlist import WaitlistRole
from app.features.waitlist.questions import questions_for_role
from app.features.waitlist.schemas.waitlist import (
    QuestionOut,
    QueuePositionOut,
    QueueStatusOut,
    SignupForm,
    SignupOut,
)
from app.features.waitlist.services.waitlist import WaitlistService
from app.features.waitlist.utils.emailer import referral_link, send_waitlist_email
from app.platform.db.session import get_db
from app.platform.logger import get_logger
from app.platform.response import api_response
from app.platform.utils.rate_limit import rate_limit

router = APIRouter(tags=["Waitlist"])
logger = get_logger(__name__)

FORM_FIELDS = (
    "role",
    "fullName",
    "full_name",
    "email",
    "phone",
    "ref",
    "referred_by",
    "referredBy",
    "accepted_privacy",
    "marketing_consent",
    "hp",
)


async def parse_signup_request(request: Request) -> Tuple[SignupForm, Optional[UploadFile]]:
    """Reads a signup from either a JSON body or a multipart form with an optional certificate."""
    content_type = request.headers.get("content-type", "")

    if "multipart/form-data" in content_type or "application/x-www-form-urlencoded" in content_type:
        form = await request.form()
        raw = {key: form.get(key) for key in FORM_FIELDS if isinstance(form.get(key), str)}
        try:
            raw["answers"] = json.loads(form.get("answers") or "{}")
        except (TypeError, ValueError):
            raw["answers"] = {}
        certificate = form.get("certificate_upload")
        certificate = certificate if isinstance(certificate, UploadFile) else None
    else:
        try:
            raw = await request.json()
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body.")
        if not isinstance(raw, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body.")
        certificate = None

    try:
        return SignupForm.model_validate(raw), certificate
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=exc.errors()[0].get("msg", "Invalid signup.")
        )


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    client_ip = request.client.host if request.client else "unknown"
    rate_limit(f"signup:{client_ip}")

    form, certificate = await parse_signup_request(request)
    logger.info(f"Signup received: role={form.role!r} email={form.email!r}")

    service = WaitlistService(db)
    entry = await service.signup(form, certificate)

    background_tasks.add_task(
        send_waitlist_email,
        entry.role,
        entry.email,
        entry.full_name,
        entry.referral_code,
        entry.queue_code,
    )

    return api_response(
        data=SignupOut(
            id=entry.id,
            referral_code=entry.referral_code,
            queue_code=entry.queue_code,
            referral_link=referral_link(entry.referral_code),
        ),
        message="Successfully added to waitlist",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/queue-position")
async def queue_position(
    id: str = Query("", description="Waitlist entry id"),
    db: AsyncSession = Depends(get_db),
):
    service = WaitlistService(db)
    position = await service.get_queue_position(id)
    return api_response(
        data=QueuePositionOut(**position),
        message="Queue position retrieved",
    )


@router.get("/queue-status")
async def queue_status(
    code: str = Query("", description="Queue code from the signup confirmation"),
    db: AsyncSession = Depends(get_db),
):
    service = WaitlistService(db)
    queue = await service.get_queue_status(code)
    return api_response(
        data=QueueStatusOut(**queue),
        message="Queue status retrieved",
    )


@router.get("/questions/{role}")
async def signup_questions(role: WaitlistRole):
    return api_response(
        data=[QuestionOut(**question) for question in questions_for_role(role.value)],
        message=f"{role.value.capitalize()} questions retrieved",
    )
