"""User preference bag schemas."""
from typing import Optional

from galaxy_chat.schemas import CamelModel


class NotificationSettings(CamelModel):
    email: Optional[bool] = None
    summary: Optional[bool] = None
    in_app: Optional[bool] = None


class SettingsUpdate(CamelModel):
    """
    Sparse settings update.

    Only keys present in the request body are applied; use
    ``model_dump(exclude_unset=True, by_alias=True)`` to get them.
    """
    theme: Optional[str] = None
    accent_color: Optional[str] = None
    font_size: Optional[str] = None
    chat_density: Optional[str] = None
    language: Optional[str] = None
    spoken_language: Optional[str] = None
    default_model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: Optional[bool] = None
    system_prompt: Optional[str] = None
    notifications: Optional[NotificationSettings] = None
    beta_features: Optional[bool] = None
    cache_enabled: Optional[bool] = None
    api_key: Optional[str] = None


class UserCreate(CamelModel):
    email: Optional[str] = None
    name: Optional[str] = None
    avatar: Optional[str] = None
