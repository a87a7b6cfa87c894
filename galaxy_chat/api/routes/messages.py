"""Message routes and the response transport for assistant replies.

Provides:
- GET /conversations/{id}/messages - Page of messages, oldest first
- POST /conversations/{id}/messages - Send message; buffered JSON reply or
  a text/event-stream of chunks ending in ``data: [DONE]``
"""
import json
import logging
from datetime import datetime
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.engine import Engine
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from galaxy_chat.core.deps import get_chat_service, get_current_user, get_db
from galaxy_chat.models.user import User
from galaxy_chat.schemas.conversation import (
    AssistantMessage,
    MessageRead,
    SendMessageRequest,
    SendMessageResponse,
)
from galaxy_chat.services import conversation_service
from galaxy_chat.services.chat_service import ChatService, PreparedTurn, TurnRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["messages"])

DONE_EVENT = "data: [DONE]\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def sse_event(payload: Any) -> str:
    """Format one server-sent event frame."""
    return f"data: {json.dumps(payload)}\n\n"


async def event_stream(
    chat_service: ChatService, bind: Engine, turn: PreparedTurn
) -> AsyncIterator[str]:
    """
    Relay pipeline chunks as SSE frames.

    Uses its own session on the request's engine: the body is produced after
    the route returns, so it must not rely on the request-scoped session.
    """
    message_id = turn.assistant_message_id
    with Session(bind) as stream_session:
        chunks = chat_service.stream_reply(stream_session, turn)
        try:
            async for chunk in chunks:
                yield sse_event({"content": chunk, "messageId": message_id})
        finally:
            # Settle the message before the session closes on disconnect
            await chunks.aclose()
    yield DONE_EVENT


@router.get("/{conversation_id}/messages", response_model=list[MessageRead])
def list_messages(
    conversation_id: int,
    limit: int = Query(default=50, ge=1, le=200),
    before: Optional[datetime] = Query(default=None),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> list[MessageRead]:
    messages = conversation_service.list_messages(
        session, user, conversation_id, limit=limit, before=before
    )
    return [MessageRead.model_validate(m) for m in messages]


@router.post("/{conversation_id}/messages")
async def send_message(
    conversation_id: int,
    request: SendMessageRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Send a user message and produce the assistant reply.

    Flow:
    1. Validate + persist user message and assistant placeholder
    2. Generate via the model gateway
    3. Return buffered JSON, or stream chunks when ``stream`` is true

    Raises:
        ValidationFailed: 400 if content is empty
        NotFoundError: 404 if conversation not found or not owned
        GenerationFailed: 500 if the reply could not be finalized
    """
    turn = await run_in_threadpool(
        chat_service.prepare_turn,
        session,
        user,
        conversation_id,
        TurnRequest(
            content=request.content,
            system_prompt=request.system_prompt,
            model=request.model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            files=[f.model_dump() for f in request.files],
        ),
    )

    if request.stream:
        return StreamingResponse(
            event_stream(chat_service, session.get_bind(), turn),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    message = await chat_service.reply(session, turn)
    return SendMessageResponse(
        message_id=message.id,
        status=message.status,
        assistant_message=AssistantMessage(
            id=message.id,
            role=message.role,
            content=message.content,
            status=message.status,
            tokens_used=message.tokens_used,
            created_at=message.created_at,
        ),
    ).model_dump(mode="json", by_alias=True)
