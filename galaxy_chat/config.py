"""Application settings for the Galaxy Chat backend.

Values come from environment variables (or a local ``.env`` file). A language
model provider whose API key is left empty is treated as unconfigured and
skipped by the model gateway.
"""
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed configuration loaded from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )
    LOG_LEVEL: str = Field(default="INFO", description="Root logging level")

    # Database
    DATABASE_URL: str = Field(
        default="sqlite:///./galaxy_chat.db", description="SQLAlchemy database URL"
    )
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL statements")

    # Identity provider tokens
    AUTH_SECRET_KEY: str = Field(
        default="change-me", description="Key used to verify session tokens"
    )
    AUTH_ALGORITHM: str = Field(default="HS256", description="JWT signing algorithm")
    AUTH_AUDIENCE: Optional[str] = Field(
        default=None, description="Expected 'aud' claim, if any"
    )

    # Groq (primary provider)
    GROQ_API_KEY: str = ""
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    GROQ_MODEL: str = "llama-3.3-70b-versatile"

    # Hugging Face inference API
    HF_API_KEY: str = ""
    HF_API_URL: str = "https://api-inference.huggingface.co/models"
    HF_MODELS: List[str] = Field(
        default=[
            "google/flan-t5-large",
            "bigscience/bloom-560m",
            "EleutherAI/gpt-neo-125m",
        ],
        description="Models tried in order until one answers",
    )

    # OpenAI or any OpenAI-compatible backend
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    # None leaves the HTTP client default in place
    PROVIDER_TIMEOUT: Optional[float] = None

    # Generation defaults
    HISTORY_LIMIT: int = Field(default=20, description="Messages sent as context")
    DEFAULT_MAX_TOKENS: int = 1500
    DEFAULT_TEMPERATURE: float = 0.7
    STREAM_CHUNK_DELAY: float = Field(
        default=0.03, description="Seconds between streamed chunks"
    )

    # Media CDN
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    UPLOAD_FOLDER: str = "galaxy-ai"
    MAX_UPLOAD_SIZE: int = Field(
        default=10 * 1024 * 1024, description="Maximum upload size in bytes"
    )


# Global settings instance
settings = Settings()
