"""Application Settings - Environment-based configuration.

Uses Pydantic Settings for validation and type coercion.

Every knowledge-base knob has a default so the service starts with the
bundled knowledge document; API keys are optional and only needed by
the provider that uses them.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from askjohn.config.constants import DEFAULT_KNOWLEDGE_BASE_PATH, KB


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API bind host")
    api_port: int = Field(default=8080, ge=1024, le=65535, description="API port")
    log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment name"
    )

    # Knowledge Base
    knowledge_base_path: str = Field(
        default=str(DEFAULT_KNOWLEDGE_BASE_PATH),
        description="Markdown document indexed at startup",
    )
    chunk_size: int = Field(
        default=KB.CHUNK_SIZE, ge=1, description="Target characters per chunk"
    )
    chunk_overlap: int = Field(
        default=KB.CHUNK_OVERLAP, ge=0, description="Characters of overlap between chunks"
    )
    retrieval_top_k: int = Field(
        default=KB.TOP_K, ge=1, description="Chunks returned per query"
    )
    index_on_startup: bool = Field(
        default=True, description="Index the knowledge base during app startup"
    )

    # Embeddings
    embedding_provider: Literal["openai", "local"] = Field(
        default="openai", description="Embedding backend"
    )
    embedding_model: str = Field(
        default=KB.EMBEDDING_MODEL,
        description="Embedding model id (shared by indexing and queries)",
    )
    embedding_concurrency: int = Field(
        default=KB.EMBEDDING_CONCURRENCY,
        ge=1,
        le=64,
        description="Maximum in-flight embedding requests during indexing",
    )
    embedding_timeout_s: float = Field(
        default=KB.EMBEDDING_TIMEOUT_S, gt=0, description="Per-call embedding timeout"
    )
    normalize_embeddings: bool = Field(
        default=False,
        description="L2-normalise vectors before scoring (cosine instead of raw dot product)",
    )

    # OpenAI / LLM
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_base_url: str | None = Field(
        default=None, description="Override for OpenAI-compatible endpoints"
    )
    llm_model: str = Field(default="gpt-4o-mini", description="Chat model for Ask John")
    llm_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    llm_timeout_s: float = Field(default=30.0, gt=0, description="Chat completion timeout")
    llm_max_tool_rounds: int = Field(
        default=3, ge=1, le=10, description="Tool-call rounds before giving up"
    )

    # Web search (Perplexity)
    perplexity_api_key: str | None = Field(
        default=None, description="Perplexity API key for the web-search tool"
    )
    perplexity_api_url: str = Field(
        default="https://api.perplexity.ai/chat/completions",
        description="Perplexity chat-completions endpoint",
    )
    perplexity_model: str = Field(default="sonar", description="Perplexity online model")
    perplexity_max_tokens: int = Field(default=300, ge=1, le=4096)
    perplexity_timeout_s: float = Field(default=20.0, gt=0)

    def model_post_init(self, __context) -> None:
        """Validate cross-field requirements after model creation."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                "chunk_overlap must be smaller than chunk_size "
                f"(got {self.chunk_overlap} >= {self.chunk_size})"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
