"""Stateless completion route.

Provides:
- POST /chat - Run a message list through the model gateway without storing it
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from galaxy_chat.core.deps import get_current_user, get_gateway
from galaxy_chat.core.errors import ValidationFailed
from galaxy_chat.models.user import User
from galaxy_chat.schemas import CamelModel
from galaxy_chat.services.gateway import ModelGateway
from galaxy_chat.services.providers import GenerationParams

router = APIRouter(tags=["chat"])


class ChatMessage(CamelModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(CamelModel):
    """Request model for a one-off completion."""
    messages: List[ChatMessage] = Field(default_factory=list)
    model: Optional[str] = None
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=4000, gt=0)


class ChatResponse(CamelModel):
    content: str
    tokens_used: int
    provider: Optional[str] = None


@router.post("/chat", response_model=ChatResponse)
async def chat_completion(
    request: ChatRequest,
    user: User = Depends(get_current_user),
    gateway: ModelGateway = Depends(get_gateway),
) -> ChatResponse:
    if not request.messages:
        raise ValidationFailed("Invalid messages")

    result = await gateway.generate(
        [m.model_dump() for m in request.messages],
        GenerationParams(temperature=request.temperature, max_tokens=request.max_tokens),
        preferred=request.model,
    )
    return ChatResponse(
        content=result.text,
        tokens_used=result.tokens_used,
        provider=result.provider,
    )
