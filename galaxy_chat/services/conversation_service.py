"""Conversation store: conversation and message persistence.

Every lookup filters on the owning user id; a conversation owned by someone
else is reported exactly like a missing one.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from galaxy_chat.core.errors import NotFoundError
from galaxy_chat.models.conversation import (
    Conversation,
    Message,
    MessageStatus,
)
from galaxy_chat.models.user import User

DEFAULT_TITLE = "New Chat"


def create_conversation(
    session: Session, user: User, title: Optional[str] = None
) -> Conversation:
    conversation = Conversation(
        user_id=user.id,
        title=title or DEFAULT_TITLE,
        meta={"messageCount": 0},
    )
    session.add(conversation)
    session.commit()
    session.refresh(conversation)
    return conversation


def list_conversations(
    session: Session, user: User, page: int = 1, limit: int = 20
) -> tuple[List[Conversation], int]:
    """
    Page through the user's conversations, most recently updated first.

    Returns:
        Tuple of (conversations on this page, total count)
    """
    statement = (
        select(Conversation)
        .where(Conversation.user_id == user.id)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    conversations = list(session.exec(statement).all())

    total = session.exec(
        select(func.count()).select_from(Conversation).where(Conversation.user_id == user.id)
    ).one()
    return conversations, total


def get_conversation(session: Session, user: User, conversation_id: int) -> Conversation:
    """
    Fetch a conversation owned by the user.

    Raises:
        NotFoundError: If missing or owned by another user
    """
    statement = select(Conversation).where(
        Conversation.id == conversation_id,
        Conversation.user_id == user.id,
    )
    conversation = session.exec(statement).first()
    if not conversation:
        raise NotFoundError("Conversation not found")
    return conversation


def update_conversation(
    session: Session,
    user: User,
    conversation_id: int,
    title: Optional[str] = None,
    pinned: Optional[bool] = None,
    archived: Optional[bool] = None,
) -> Conversation:
    """Partial update; an empty title keeps the current one."""
    conversation = get_conversation(session, user, conversation_id)

    if title:
        conversation.title = title
    if pinned is not None:
        conversation.pinned = pinned
    if archived is not None:
        conversation.archived = archived
    conversation.updated_at = datetime.utcnow()

    session.add(conversation)
    session.commit()
    session.refresh(conversation)
    return conversation


def delete_conversation(session: Session, user: User, conversation_id: int) -> None:
    """Hard delete a conversation and its messages."""
    conversation = get_conversation(session, user, conversation_id)
    session.delete(conversation)
    session.commit()


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def list_messages(
    session: Session,
    user: User,
    conversation_id: int,
    limit: int = 50,
    before: Optional[datetime] = None,
) -> List[Message]:
    """
    Newest ``limit`` messages (optionally created before ``before``),
    returned oldest first.
    """
    get_conversation(session, user, conversation_id)

    statement = select(Message).where(Message.conversation_id == conversation_id)
    if before is not None:
        statement = statement.where(Message.created_at < _naive_utc(before))
    statement = statement.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit)

    messages = list(session.exec(statement).all())
    messages.reverse()
    return messages


def add_message(
    session: Session,
    conversation_id: int,
    role: str,
    content: str,
    status: str = MessageStatus.COMPLETED,
    meta: Optional[Dict[str, Any]] = None,
    files: Optional[List[Dict[str, Any]]] = None,
) -> Message:
    message = Message(
        conversation_id=conversation_id,
        role=role,
        content=content,
        status=status,
        tokens_used=0,
        meta=meta or {},
        files=files or [],
    )
    session.add(message)
    session.commit()
    session.refresh(message)
    return message


def touch_conversation(session: Session, conversation: Conversation) -> Conversation:
    """Bump the message counter and refresh timestamps."""
    now = datetime.utcnow()
    meta = dict(conversation.meta or {})
    meta["messageCount"] = meta.get("messageCount", 0) + 1
    meta["lastMessageAt"] = now.isoformat()

    conversation.meta = meta
    conversation.updated_at = now
    session.add(conversation)
    session.commit()
    session.refresh(conversation)
    return conversation


def recent_history(
    session: Session, conversation_id: int, limit: int = 20
) -> List[Dict[str, str]]:
    """
    Role/content pairs for model context.

    Takes the last ``limit`` settled messages, oldest first. Assistant
    replies still pending or streaming are not counted against the limit.
    """
    statement = (
        select(Message)
        .where(
            Message.conversation_id == conversation_id,
            Message.status.notin_([MessageStatus.PENDING, MessageStatus.STREAMING]),
        )
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
    )
    messages = list(session.exec(statement).all())
    messages.reverse()

    return [{"role": m.role, "content": m.content} for m in messages]
