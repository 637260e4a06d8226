from fastapi import APIRouter, Depends, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.platform.config import settings
from app.platform.db.session import get_db
from app.platform.logger import get_logger
from app.platform.response import api_response

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", tags=["health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as exc:
        logger.error(f"Health check could not reach the database: {exc}")
        database = "unavailable"

    if database != "ok":
        return api_response(
            data={"status": "degraded", "service": settings.APP_NAME, "database": database},
            message="Database unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return api_response(
        data={"status": "ok", "service": settings.APP_NAME, "database": database},
        message="Service is healthy",
        status_code=status.HTTP_200_OK,
    )
