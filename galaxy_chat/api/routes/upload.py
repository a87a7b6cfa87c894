"""File upload route.

Provides:
- POST /upload - Multipart ``file`` field, stored on the media CDN
"""
from typing import Optional

from fastapi import APIRouter, Depends, File as FileField, UploadFile
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from galaxy_chat.core.deps import get_current_user, get_db
from galaxy_chat.core.errors import ValidationFailed
from galaxy_chat.models.user import User
from galaxy_chat.services import upload_service

router = APIRouter(tags=["upload"])


@router.post("/upload")
async def upload_file(
    file: Optional[UploadFile] = FileField(default=None),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> dict:
    if file is None:
        raise ValidationFailed("No file provided")

    data = await file.read()
    upload_service.validate_upload(data)

    result = await run_in_threadpool(
        upload_service.upload_to_cdn, data, upload_service.public_id_for(user)
    )
    record = upload_service.record_upload(
        session,
        user,
        file_name=file.filename or "upload",
        mime_type=file.content_type,
        size=len(data),
        upload_result=result,
    )

    return {
        "id": record.id,
        "url": record.file_path,
        "name": record.file_name,
        "size": record.size_bytes,
        "type": record.mime_type,
    }
