"""User settings routes.

Provides:
- GET /settings - Caller's preference bag
- PUT /settings - Sparse update; only keys present in the body change
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlmodel import Session

from galaxy_chat.core.deps import get_current_user, get_db
from galaxy_chat.models.user import User
from galaxy_chat.schemas.settings import SettingsUpdate
from galaxy_chat.services import user_service

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
def read_settings(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return user_service.get_preferences(user)


@router.put("")
def write_settings(
    request: SettingsUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> Dict[str, Any]:
    changes = request.model_dump(exclude_unset=True, by_alias=True)
    return user_service.update_preferences(session, user, changes)
