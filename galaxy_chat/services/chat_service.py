"""Message pipeline for a single user turn.

Handles:
- Content validation and ownership check
- User message + assistant placeholder storage
- Model gateway call with recent conversation history
- Buffered or paced (simulated streaming) delivery
- Assistant message finalization (completed / failed)
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Iterator, List, Optional

from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from galaxy_chat.config import settings
from galaxy_chat.core.errors import GenerationFailed, ValidationFailed
from galaxy_chat.models.conversation import (
    PLACEHOLDER_CONTENT,
    Message,
    MessageRole,
    MessageStatus,
)
from galaxy_chat.models.user import User
from galaxy_chat.services import conversation_service
from galaxy_chat.services.gateway import GenerationResult, ModelGateway
from galaxy_chat.services.providers import GenerationParams

logger = logging.getLogger(__name__)

FAILED_REPLY = "Sorry, I encountered an error generating a response."


@dataclass
class TurnRequest:
    content: str
    system_prompt: Optional[str] = None
    model: str = "groq"
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    files: Optional[List[Dict[str, Any]]] = None


@dataclass
class PreparedTurn:
    """State handed from the persist phase to the generate phase."""
    conversation_id: int
    user_message_id: int
    assistant_message_id: int
    history: List[Dict[str, str]]
    params: GenerationParams
    preferred: Optional[str]


def iter_chunks(text: str) -> Iterator[str]:
    """
    Split text on single spaces, keeping the separator on every chunk but the
    last, so that ``"".join(iter_chunks(t)) == t``.
    """
    words = text.split(" ")
    for i, word in enumerate(words):
        yield word + (" " if i < len(words) - 1 else "")


class ChatService:
    """Service layer for the message pipeline."""

    def __init__(
        self,
        gateway: Optional[ModelGateway] = None,
        history_limit: Optional[int] = None,
        chunk_delay: Optional[float] = None,
    ):
        self.gateway = gateway or ModelGateway.from_settings(settings)
        self.history_limit = history_limit or settings.HISTORY_LIMIT
        self.chunk_delay = settings.STREAM_CHUNK_DELAY if chunk_delay is None else chunk_delay

    def prepare_turn(
        self,
        session: Session,
        user: User,
        conversation_id: int,
        request: TurnRequest,
    ) -> PreparedTurn:
        """
        Validate and persist the user side of a turn.

        Flow:
        1. Reject empty content (no writes)
        2. Verify conversation ownership
        3. Store user message (completed)
        4. Store assistant placeholder (pending)
        5. Bump conversation counters
        6. Load trimmed history for the model

        Raises:
            ValidationFailed: If content is empty after trimming
            NotFoundError: If conversation not owned by user
        """
        content = (request.content or "").strip()
        if not content:
            raise ValidationFailed("Message content is required")

        conversation = conversation_service.get_conversation(session, user, conversation_id)

        max_tokens = request.max_tokens or settings.DEFAULT_MAX_TOKENS
        temperature = (
            settings.DEFAULT_TEMPERATURE if request.temperature is None else request.temperature
        )

        user_message = conversation_service.add_message(
            session,
            conversation.id,
            role=MessageRole.USER,
            content=content,
            status=MessageStatus.COMPLETED,
            files=request.files,
        )
        user_message_id = user_message.id

        assistant_message = conversation_service.add_message(
            session,
            conversation.id,
            role=MessageRole.ASSISTANT,
            content=PLACEHOLDER_CONTENT,
            status=MessageStatus.PENDING,
            meta={"model": request.model, "temperature": temperature, "maxTokens": max_tokens},
        )
        assistant_message_id = assistant_message.id

        conversation_service.touch_conversation(session, conversation)

        history = conversation_service.recent_history(
            session, conversation.id, self.history_limit
        )
        if request.system_prompt:
            history.insert(0, {"role": MessageRole.SYSTEM, "content": request.system_prompt})

        logger.info(
            f"Turn prepared: user={user.id}, conversation={conversation.id}, "
            f"message_id={user_message_id}, placeholder_id={assistant_message_id}"
        )

        return PreparedTurn(
            conversation_id=conversation.id,
            user_message_id=user_message_id,
            assistant_message_id=assistant_message_id,
            history=history,
            params=GenerationParams(temperature=temperature, max_tokens=max_tokens),
            preferred=request.model,
        )

    async def generate(self, turn: PreparedTurn) -> GenerationResult:
        return await self.gateway.generate(turn.history, turn.params, preferred=turn.preferred)

    def finalize(
        self, session: Session, message: Message, result: GenerationResult
    ) -> Message:
        """Write final content and mark the assistant message completed."""
        meta = dict(message.meta or {})
        meta["provider"] = result.provider

        message.content = result.text
        message.status = MessageStatus.COMPLETED
        message.tokens_used = result.tokens_used
        message.meta = meta
        message.updated_at = datetime.utcnow()
        session.add(message)
        session.commit()
        session.refresh(message)
        return message

    def mark_failed(self, session: Session, message: Message, error: BaseException) -> Message:
        """Force the assistant message to failed with an error note."""
        session.rollback()
        meta = dict(message.meta or {})
        meta["error"] = str(error) or error.__class__.__name__

        message.content = FAILED_REPLY
        message.status = MessageStatus.FAILED
        message.meta = meta
        message.updated_at = datetime.utcnow()
        session.add(message)
        session.commit()
        session.refresh(message)
        return message

    async def reply(self, session: Session, turn: PreparedTurn) -> Message:
        """
        Non-streaming path: generate and finalize in one go.

        Raises:
            GenerationFailed: If generation or finalization raised; the
                assistant message is left in "failed" state
        """
        message = await run_in_threadpool(session.get, Message, turn.assistant_message_id)
        try:
            result = await self.generate(turn)
            return await run_in_threadpool(self.finalize, session, message, result)
        except Exception as e:
            logger.exception(f"Non-streaming error for message {turn.assistant_message_id}: {e}")
            await run_in_threadpool(self.mark_failed, session, message, e)
            raise GenerationFailed("Failed to generate response") from e

    async def stream_reply(self, session: Session, turn: PreparedTurn) -> AsyncIterator[str]:
        """
        Streaming path: generate the full text, then yield it chunk by chunk
        with a fixed delay between chunks.

        The assistant message is finalized before the generator finishes. On
        error it is marked failed and the exception propagates so the
        transport can abort the stream. If the consumer closes or cancels the
        stream, a reply already generated is stored in full; otherwise the
        message is marked failed.
        """
        # The caller may hand us a session other than the one that created
        # the placeholder, so load it into this one.
        message = session.get(Message, turn.assistant_message_id)
        result = None
        try:
            message.status = MessageStatus.STREAMING
            session.add(message)
            session.commit()
            session.refresh(message)

            result = await self.generate(turn)

            streamed = []
            for chunk in iter_chunks(result.text):
                streamed.append(chunk)
                yield chunk
                if self.chunk_delay:
                    await asyncio.sleep(self.chunk_delay)

            self.finalize(
                session,
                message,
                GenerationResult(
                    text="".join(streamed),
                    tokens_used=result.tokens_used,
                    provider=result.provider,
                ),
            )
        except Exception as e:
            logger.exception(f"Streaming error for message {turn.assistant_message_id}: {e}")
            self.mark_failed(session, message, e)
            raise
        except BaseException as e:
            # GeneratorExit / CancelledError: the client went away mid-stream
            if result is not None:
                logger.info(f"Stream closed early, storing full reply for {turn.assistant_message_id}")
                self.finalize(session, message, result)
            else:
                logger.warning(f"Stream closed before a reply was generated for {turn.assistant_message_id}")
                self.mark_failed(session, message, e)
            raise
