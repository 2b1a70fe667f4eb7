"""Configuration management for the portfolio twin service."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # OpenAI configuration (required, used for embeddings)
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")

    # Environment
    PORTFOLIO_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Single-tenant owner
    DEFAULT_OWNER_ID: str = Field(
        default="00000000-0000-0000-0000-000000000001",
        description="Owner id scoping every content row",
    )
    OWNER_NAME: str = Field(default="the site owner", description="Name the chat twin speaks as")

    # Embedding configuration
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    EMBEDDING_DIM: int = Field(default=1536, description="Embedding vector dimension")
    EMBEDDING_BATCH_SIZE: int = Field(default=32, description="Texts per embeddings request")

    # Chunking
    CHUNK_MAX_CHARS: int = Field(default=1000, description="Max characters per chunk")
    CHUNK_MIN_CHARS: int = Field(default=50, description="Chunks shorter than this are dropped")

    # Chat completion (OpenAI-compatible endpoint)
    CHAT_API_BASE_URL: str | None = Field(
        default=None, description="Base URL of the OpenAI-compatible chat API"
    )
    CHAT_API_KEY: str | None = Field(
        default=None, description="Chat API key (falls back to OPENAI_API_KEY)"
    )
    CHAT_MODEL: str = Field(default="gpt-4o-mini", description="Model for the chat twin")
    TEXT_MODEL: str = Field(default="gpt-4o-mini", description="Model for JD parsing and summaries")
    CHAT_STREAMING: bool = Field(default=True, description="Stream chat completions")

    # Admin auth
    ADMIN_PASSWORD: str | None = Field(default=None, description="Admin login password")
    ADMIN_SESSION_SECRET: str | None = Field(
        default=None, description="HMAC secret for admin session cookies"
    )

    # Public site
    PUBLIC_SITE_URL: str = Field(
        default="http://localhost:8000", description="Absolute base URL used in citations"
    )
    RESUME_PATH: str = Field(default="bank/resume.pdf", description="Local resume PDF for download")
    RESUME_BUCKET: str = Field(default="portfolio-resume", description="Storage bucket for resume")
    RESUME_OBJECT_PATH: str = Field(default="resume.pdf", description="Resume object path in bucket")

    # Upload limits
    MAX_UPLOAD_BYTES: int = Field(default=10_000_000, description="Max file upload size in bytes")

    @property
    def is_production(self) -> bool:
        return self.PORTFOLIO_ENV == "prod"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
