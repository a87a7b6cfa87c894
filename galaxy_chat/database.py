"""Database engine and session management."""
from typing import Generator

from sqlmodel import Session, SQLModel, create_engine

from galaxy_chat.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    connect_args=connect_args,
)


def init_db() -> None:
    """Create all tables."""
    # Import models so they register on SQLModel.metadata
    from galaxy_chat.models import conversation, file, user  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a database session."""
    with Session(engine) as session:
        yield session
