"""Uploaded file record. The bytes live on the media CDN."""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class File(SQLModel, table=True):
    __tablename__ = "file"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, nullable=False)
    file_name: str = Field(nullable=False)
    file_path: str = Field(nullable=False)  # CDN URL
    mime_type: str = Field(default="application/octet-stream")
    size_bytes: int = Field(default=0)
    # cloudinaryId, format, width, height
    meta: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
