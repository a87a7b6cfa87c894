"""User preference bag reads and sparse updates."""
import logging
from datetime import datetime
from typing import Any, Dict

from sqlmodel import Session

from galaxy_chat.models.user import User, default_preferences

logger = logging.getLogger(__name__)


def get_preferences(user: User) -> Dict[str, Any]:
    """Stored preferences layered over the defaults."""
    prefs = default_preferences()
    stored = user.preferences or {}
    for key, value in stored.items():
        if key == "notifications" and isinstance(value, dict):
            prefs["notifications"] = {**prefs["notifications"], **value}
        else:
            prefs[key] = value
    return prefs


def update_preferences(session: Session, user: User, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply only the keys present in ``changes``.

    The nested ``notifications`` object is merged key by key rather than
    replaced.
    """
    prefs = get_preferences(user)
    for key, value in changes.items():
        if key == "notifications":
            if value is None:
                continue
            prefs["notifications"] = {**prefs["notifications"], **value}
        else:
            prefs[key] = value

    # Assign a new dict so the JSON column is flushed
    user.preferences = prefs
    user.updated_at = datetime.utcnow()
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"Updated preferences for user {user.id}: {sorted(changes)}")
    return get_preferences(user)
