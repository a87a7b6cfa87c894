"""Conversation and message schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from galaxy_chat.schemas import CamelModel


class ConversationCreate(CamelModel):
    title: Optional[str] = None


class ConversationUpdate(CamelModel):
    """Partial update. Falsy title and null flags leave fields unchanged."""
    title: Optional[str] = None
    pinned: Optional[bool] = None
    archived: Optional[bool] = None


class ConversationRead(CamelModel):
    id: int
    title: str
    pinned: bool
    archived: bool
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    created_at: datetime
    updated_at: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class ConversationPage(CamelModel):
    conversations: List[ConversationRead]
    pagination: Pagination


class FileDescriptor(CamelModel):
    id: str
    name: str
    type: str
    url: str
    size: int


class MessageRead(CamelModel):
    id: int
    conversation_id: int
    role: str
    content: str
    status: str
    tokens_used: int
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    files: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class SendMessageRequest(CamelModel):
    content: str = ""
    system_prompt: Optional[str] = None
    model: str = "groq"
    max_tokens: Optional[int] = Field(default=None, gt=0)
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    stream: bool = False
    files: List[FileDescriptor] = Field(default_factory=list)


class AssistantMessage(CamelModel):
    id: int
    role: str
    content: str
    status: str
    tokens_used: int
    created_at: datetime


class SendMessageResponse(CamelModel):
    message_id: int
    status: str
    assistant_message: AssistantMessage
