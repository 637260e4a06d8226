import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from app.platform.config import settings
from app.platform.logger import get_logger

logger = get_logger(__name__)

admin_secret_header = APIKeyHeader(name="X-Admin-Secret", auto_error=False)


async def get_current_admin(provided: Optional[str] = Depends(admin_secret_header)) -> dict:
    """
    Guards the admin endpoints with the shared admin secret.
    With no ADMIN_SECRET configured the endpoints stay open for local development.
    """
    if not settings.ADMIN_SECRET:
        return {"authenticated": False}

    if not provided or not secrets.compare_digest(provided.strip(), settings.ADMIN_SECRET):
        logger.warning("Rejected admin request with missing or invalid secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    return {"authenticated": True}
