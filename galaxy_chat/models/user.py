"""User SQLModel definition and default preference bag."""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def default_preferences() -> Dict[str, Any]:
    """Preference bag given to every new user."""
    return {
        "theme": "system",
        "accentColor": "#10a37f",
        "fontSize": "medium",
        "chatDensity": "comfortable",
        "language": "en",
        "spokenLanguage": "auto",
        "defaultModel": "groq",
        "temperature": 0.7,
        "maxTokens": 1500,
        "stream": True,
        "systemPrompt": "",
        "notifications": {"email": True, "summary": False, "inApp": True},
        "betaFeatures": False,
        "cacheEnabled": True,
        "apiKey": "",
    }


class User(SQLModel, table=True):
    """
    User entity, keyed by the identity provider's subject id.

    Created lazily on the first authenticated request.
    """
    __tablename__ = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    subject: str = Field(index=True, unique=True, nullable=False, max_length=255)
    email: str = Field(default="", max_length=255)
    name: str = Field(default="User", max_length=255)
    avatar: str = Field(default="")
    role: str = Field(default="user", max_length=20)
    preferences: Dict[str, Any] = Field(
        default_factory=default_preferences, sa_column=Column(JSON)
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
