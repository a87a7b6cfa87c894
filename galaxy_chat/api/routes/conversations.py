"""Conversation CRUD routes.

Provides:
- POST /conversations - Create conversation
- GET /conversations - Paginated list, most recently updated first
- GET /conversations/{id} - Single conversation
- PUT /conversations/{id} - Partial update (title, pinned, archived)
- DELETE /conversations/{id} - Hard delete with messages
"""
import math

from fastapi import APIRouter, Body, Depends, Query, status
from sqlmodel import Session

from galaxy_chat.core.deps import get_current_user, get_db
from galaxy_chat.models.user import User
from galaxy_chat.schemas.conversation import (
    ConversationCreate,
    ConversationPage,
    ConversationRead,
    ConversationUpdate,
    Pagination,
)
from galaxy_chat.services import conversation_service

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.post("", response_model=ConversationRead, status_code=status.HTTP_201_CREATED)
def create_conversation(
    request: ConversationCreate = Body(default=ConversationCreate()),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ConversationRead:
    conversation = conversation_service.create_conversation(session, user, request.title)
    return ConversationRead.model_validate(conversation)


@router.get("", response_model=ConversationPage)
def list_conversations(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ConversationPage:
    conversations, total = conversation_service.list_conversations(session, user, page, limit)
    return ConversationPage(
        conversations=[ConversationRead.model_validate(c) for c in conversations],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit),
        ),
    )


@router.get("/{conversation_id}", response_model=ConversationRead)
def get_conversation(
    conversation_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ConversationRead:
    conversation = conversation_service.get_conversation(session, user, conversation_id)
    return ConversationRead.model_validate(conversation)


@router.put("/{conversation_id}", response_model=ConversationRead)
def update_conversation(
    conversation_id: int,
    request: ConversationUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ConversationRead:
    conversation = conversation_service.update_conversation(
        session,
        user,
        conversation_id,
        title=request.title,
        pinned=request.pinned,
        archived=request.archived,
    )
    return ConversationRead.model_validate(conversation)


@router.delete("/{conversation_id}")
def delete_conversation(
    conversation_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> dict:
    conversation_service.delete_conversation(session, user, conversation_id)
    return {"message": "Conversation deleted successfully"}
