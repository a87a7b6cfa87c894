"""File uploads to the media CDN (Cloudinary) plus the local File record."""
import logging
import time
from typing import Any, Dict

import cloudinary
import cloudinary.uploader
from sqlmodel import Session

from galaxy_chat.config import settings
from galaxy_chat.core.errors import ValidationFailed
from galaxy_chat.models.file import File
from galaxy_chat.models.user import User

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True,
)


def upload_to_cdn(data: bytes, public_id: str) -> Dict[str, Any]:
    """Blocking upload; call from a worker thread."""
    try:
        return cloudinary.uploader.upload(
            data,
            public_id=public_id,
            resource_type="auto",
            folder=settings.UPLOAD_FOLDER,
        )
    except Exception as e:
        logger.error(f"Cloudinary upload error: {e}")
        raise


def validate_upload(data: bytes) -> None:
    if not data:
        raise ValidationFailed("No file provided")
    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise ValidationFailed(
            f"File too large (max {settings.MAX_UPLOAD_SIZE // (1024 * 1024)} MB)"
        )


def public_id_for(user: User) -> str:
    return f"{user.subject}/{int(time.time() * 1000)}"


def record_upload(
    session: Session,
    user: User,
    file_name: str,
    mime_type: str,
    size: int,
    upload_result: Dict[str, Any],
) -> File:
    record = File(
        user_id=user.id,
        file_name=file_name,
        file_path=upload_result["secure_url"],
        mime_type=mime_type or "application/octet-stream",
        size_bytes=size,
        meta={
            "cloudinaryId": upload_result.get("public_id"),
            "format": upload_result.get("format"),
            "width": upload_result.get("width"),
            "height": upload_result.get("height"),
        },
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    logger.info(f"Stored upload {record.id} for user {user.id} ({size} bytes)")
    return record
