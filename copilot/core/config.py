"""Configuration management for Portfolio Copilot."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # Sandboxed environments may not expose .env; variables come from the process env
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

    # Provider credentials
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key (embeddings, optional chat)")
    ANTHROPIC_API_KEY: str = Field(default="", description="Anthropic API key (optional chat)")

    # Environment
    COPILOT_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173",
        description="Comma-separated list of origins allowed to call the API",
    )

    # Embedding configuration
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    EMBEDDING_DIM: int = Field(default=1536, description="Embedding vector dimension")
    EMBEDDING_SOURCE: str = Field(
        default="description", description="company_embeddings.source label used for search"
    )

    # Completion configuration
    COMPLETION_PROVIDER: str = Field(
        default="openai",
        description="Chat completion vendor: openai or anthropic",
        pattern="^(openai|anthropic)$",
    )
    OPENAI_CHAT_MODEL: str = Field(default="gpt-4o-mini", description="OpenAI chat model")
    ANTHROPIC_CHAT_MODEL: str = Field(
        default="claude-3-5-haiku-20241022", description="Anthropic chat model"
    )
    CHAT_TEMPERATURE: float = Field(default=0.3, description="Sampling temperature for answers")
    CHAT_MAX_TOKENS: int = Field(default=1000, description="Max tokens per generated answer")
    CHAT_HISTORY_LIMIT: int = Field(
        default=10, description="Most recent caller-supplied turns forwarded to the model"
    )

    # Retrieval configuration
    SIMILARITY_FLOOR: float = Field(
        default=0.5, description="Minimum cosine similarity for a vector match"
    )
    CHAT_DEFAULT_TOP_K: int = Field(default=5, description="top_k used when none is requested")
    CHAT_MAX_TOP_K: int = Field(default=10, description="Upper bound for requested top_k")
    FALLBACK_COMPANY_LIMIT: int = Field(
        default=30, description="Companies returned when every retrieval stage is empty"
    )
    MAX_CONTEXT_COMPANIES: int = Field(
        default=30, description="Max companies serialized into the chat context"
    )

    # Answer verification
    FORBIDDEN_TERMS: str = Field(
        default=(
            "nvidia,google,microsoft,openai,amazon,apple,tesla,ibm,"
            "deepmind,anthropic,salesforce,oracle"
        ),
        description="Comma-separated outside-domain company names the answer must not mention",
    )

    # Timeouts (seconds)
    PROVIDER_TIMEOUT_SECONDS: float = Field(
        default=30.0, description="Timeout for embedding and completion calls"
    )
    STORE_TIMEOUT_SECONDS: float = Field(default=10.0, description="Timeout for Supabase calls")

    @property
    def forbidden_terms(self) -> list[str]:
        """FORBIDDEN_TERMS split into a clean list."""
        return [term.strip() for term in self.FORBIDDEN_TERMS.split(",") if term.strip()]

    @property
    def cors_origins(self) -> list[str]:
        """CORS_ORIGINS split into a clean list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


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
