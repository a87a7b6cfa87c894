"""User routes.

Provides:
- POST /users - Create the caller's user record if absent (idempotent)
- GET /users/me - Caller's profile
"""
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from sqlmodel import Session

from galaxy_chat.core.deps import get_current_user, get_db, get_or_create_user, get_subject
from galaxy_chat.models.user import User
from galaxy_chat.schemas import CamelModel
from galaxy_chat.schemas.settings import UserCreate
from galaxy_chat.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


class UserRead(CamelModel):
    id: int
    subject: str
    email: str
    name: str
    avatar: str
    role: str
    preferences: Dict[str, Any]
    created_at: datetime
    updated_at: datetime


def _user_payload(user: User) -> Dict[str, Any]:
    data = UserRead.model_validate(user)
    data.preferences = user_service.get_preferences(user)
    return data.model_dump(mode="json", by_alias=True)


@router.post("")
def create_user(
    request: UserCreate = Body(default=UserCreate()),
    subject: str = Depends(get_subject),
    session: Session = Depends(get_db),
) -> JSONResponse:
    user, created = get_or_create_user(
        session,
        subject,
        email=request.email,
        name=request.name,
        avatar=request.avatar,
    )
    return JSONResponse(
        content=_user_payload(user),
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@router.get("/me")
def read_me(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return _user_payload(user)
