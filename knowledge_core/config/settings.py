"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from TWO sources (in priority
# order):
#
#   1. **Environment variables**: e.g. EMBEDDING_API_KEY=sk-abc123
#      (highest priority, always wins)
#   2. **.env file**: key=value lines in the project root .env file
#      (lower priority, used for local development)
#
# Field ``embedding_api_key`` maps to env var ``EMBEDDING_API_KEY``.
# Defaults apply when neither source defines a field.
#
# Settings are read ONCE, when the object is built, and then handed to
# the providers that need them.  Nothing in knowledge_core re-reads the
# environment at call time.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """knowledge_core settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embedding provider ===
    # Empty string = "not configured" → HttpEmbeddingProvider raises
    # ConfigurationError on first use.
    embedding_api_key: str = ""
    embedding_api_url: str = "https://forge.manus.im"
    embedding_model: str = "text-embedding-3-small"
    embedding_batch_size: int = Field(default=10, ge=1)
    embedding_batch_delay_ms: int = Field(default=100, ge=0)
    embedding_timeout: float = Field(default=30.0, gt=0)

    # === Chunking ===
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)

    # === Retrieval ===
    rag_top_k: int = Field(default=5, ge=1)
    rag_min_similarity: float = Field(default=0.7, ge=-1.0, le=1.0)
    rag_max_context_length: int = Field(default=3000, gt=0)

    # === Document uploads ===
    upload_dir: str = "./uploads"
    max_upload_size_mb: int = Field(default=10, gt=0)

    # === Crawler ===
    crawl_user_agent: str = "CBase-Bot/1.0 (+https://github.com/o9nn/cbase)"
    crawl_rate_limit_ms: int = Field(default=1000, ge=0)
    crawl_timeout_ms: int = Field(default=30000, gt=0)
    crawl_respect_robots_txt: bool = True
    robots_timeout: float = Field(default=5.0, gt=0)

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def has_embedding_credentials(self) -> bool:
        """Return ``True`` when an embedding API key is configured."""
        return bool(self.embedding_api_key)
