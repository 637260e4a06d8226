import uuid
from pathlib import Path

from fastapi import HTTPException, UploadFile, status

from app.platform.config import settings
from app.platform.logger import get_logger

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".jpg", ".jpeg", ".png", ".webp"}
ALLOWED_CONTENT_TYPES = {"application/pdf", "image/jpeg", "image/png", "image/webp"}


def validate_certificate_file(file: UploadFile) -> None:
    """
    Validate an uploaded certificate for type.

    Args:
        file: The uploaded file to validate

    Raises:
        HTTPException: If validation fails
    """
    file_ext = Path(file.filename or "").suffix.lower()
    if file_ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
        )

    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid content type. Must be a PDF or image file.",
        )


async def save_certificate(file: UploadFile, owner_key: str) -> str:
    """
    Save an uploaded certificate to the certificate bucket directory.

    Args:
        file: The uploaded certificate
        owner_key: Prefix for the stored filename (e.g. the signup's queue code)

    Returns:
        str: The public path of the saved file
    """
    validate_certificate_file(file)

    upload_dir = Path(settings.CERTIFICATE_UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)

    file_ext = Path(file.filename).suffix.lower()
    unique_filename = f"{owner_key}_{uuid.uuid4().hex}{file_ext}"
    file_path = upload_dir / unique_filename

    contents = await file.read()
    if len(contents) > settings.CERTIFICATE_MAX_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size is {settings.CERTIFICATE_MAX_BYTES // (1024 * 1024)}MB",
        )

    try:
        with open(file_path, "wb") as f:
            f.write(contents)
    except OSError as e:
        logger.error(f"Failed to store certificate {unique_filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save file: {str(e)}",
        )

    return f"/{upload_dir.as_posix().strip('/')}/{unique_filename}"


def delete_certificate(url: str) -> None:
    """Remove a stored certificate by the public path `save_certificate` returned."""
    file_path = Path(settings.CERTIFICATE_UPLOAD_DIR) / Path(url).name
    try:
        file_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to remove certificate {file_path.name}: {e}")
