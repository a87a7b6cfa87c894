"""Conversation and Message SQLModel definitions.

Models:
- Conversation: titled container of messages owned by one user
- Message: a single user, assistant or system turn inside a conversation
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel

PLACEHOLDER_CONTENT = "Thinking..."


class MessageRole:
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class MessageStatus:
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class Conversation(SQLModel, table=True):
    """
    Conversation entity.

    Ownership: each conversation belongs to exactly one user via user_id.
    All queries MUST filter by user_id.
    """
    __tablename__ = "conversation"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, nullable=False)
    title: str = Field(default="New Chat", max_length=200)
    pinned: bool = Field(default=False)
    archived: bool = Field(default=False)
    # messageCount, lastMessageAt
    meta: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    messages: List["Message"] = Relationship(
        back_populates="conversation",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Message(SQLModel, table=True):
    """
    Message entity.

    Assistant messages start as a "pending" placeholder and move exactly once
    to "completed" or "failed" (optionally passing through "streaming").
    """
    __tablename__ = "message"

    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: int = Field(foreign_key="conversation.id", index=True, nullable=False)
    role: str = Field(default=MessageRole.USER, max_length=20)
    content: str = Field(default="")
    status: str = Field(default=MessageStatus.COMPLETED, max_length=20)
    tokens_used: int = Field(default=0)
    # model, temperature, maxTokens, provider, error
    meta: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    # Denormalized file descriptors: {id, name, type, url, size}
    files: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    conversation: Optional[Conversation] = Relationship(back_populates="messages")
