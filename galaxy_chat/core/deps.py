"""Shared API dependencies: database session and authenticated caller."""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlmodel import Session, select

from galaxy_chat.config import settings
from galaxy_chat.database import get_db
from galaxy_chat.models.user import User
from galaxy_chat.services.chat_service import ChatService
from galaxy_chat.services.gateway import ModelGateway

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

__all__ = [
    "get_db",
    "get_token_claims",
    "get_subject",
    "get_current_user",
    "get_or_create_user",
    "get_gateway",
    "get_chat_service",
]


def get_gateway(request: Request) -> ModelGateway:
    """Gateway built once in the application lifespan."""
    return request.app.state.gateway


def get_chat_service(gateway: ModelGateway = Depends(get_gateway)) -> ChatService:
    return ChatService(gateway=gateway)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> dict:
    """Verify a session token issued by the identity provider."""
    options = {"verify_aud": settings.AUTH_AUDIENCE is not None}
    return jwt.decode(
        token,
        settings.AUTH_SECRET_KEY,
        algorithms=[settings.AUTH_ALGORITHM],
        audience=settings.AUTH_AUDIENCE,
        options=options,
    )


async def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    """Return verified token claims or raise 401."""
    if credentials is None:
        raise _unauthorized()

    try:
        claims = decode_token(credentials.credentials)
    except JWTError as e:
        logger.warning(f"Rejected session token: {e}")
        raise _unauthorized()

    if not claims.get("sub"):
        raise _unauthorized()

    return claims


async def get_subject(claims: dict = Depends(get_token_claims)) -> str:
    """Identity-provider subject id of the caller."""
    return str(claims["sub"])


def get_or_create_user(
    session: Session,
    subject: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    avatar: Optional[str] = None,
) -> tuple[User, bool]:
    """
    Find the user for a subject id, creating it when absent.

    Returns:
        Tuple of (user, created)
    """
    user = session.exec(select(User).where(User.subject == subject)).first()
    if user:
        return user, False

    user = User(
        subject=subject,
        email=email or "",
        name=name or "User",
        avatar=avatar or "",
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"Created user {user.id} for subject {subject}")
    return user, True


async def get_current_user(
    claims: dict = Depends(get_token_claims),
    session: Session = Depends(get_db),
) -> User:
    """Resolve the caller's User row, creating it on first sight."""
    user, _ = get_or_create_user(
        session,
        str(claims["sub"]),
        email=claims.get("email"),
        name=claims.get("name"),
        avatar=claims.get("picture"),
    )
    return user
