"""Settings loaded from `MEMORY_BANK_*` environment variables and `.env`."""

import logging
from pathlib import Path
from typing import Literal, Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _data_dir() -> Path:
    return Path.cwd() / "data"


class Settings(BaseSettings):
    """Runtime configuration for the memory bank server.

    Every field can be set through an environment variable named after it
    with the `MEMORY_BANK_` prefix, e.g. `MEMORY_BANK_MAX_SECTIONS=5`.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMORY_BANK_", env_file=".env", env_file_encoding="utf-8"
    )

    # Storage
    root_path: str = Field(
        default_factory=lambda: str(_data_dir() / "projects"),
        description="Directory with one sub-directory of item files per project",
    )
    database_path: str = Field(
        default_factory=lambda: str(_data_dir() / "memory_bank.db"),
        description="SQLite file holding the vector index and the summaries",
    )

    # Embeddings
    embedding_provider: Literal["local", "openai", "hash"] = "local"
    embedding_model: str = Field(
        default="all-MiniLM-L6-v2",
        description="sentence-transformers model used by the local provider",
    )
    embedding_dimensions: int = Field(default=384, ge=1, le=4096)

    # OpenAI, required only when a provider below is "openai"
    openai_api_key: str | None = None
    openai_embedding_model: str = "text-embedding-3-small"
    openai_chat_model: str = "gpt-4o-mini"

    summarizer_provider: Literal["extractive", "openai"] = "extractive"

    token_counter: Literal["tiktoken", "estimate"] = "tiktoken"
    token_counter_model: str = Field(
        default="gpt-4", description="Model whose tiktoken encoding counts tokens"
    )

    max_content_length: int = Field(
        default=1_000_000, ge=1, description="Longest item text accepted, in characters"
    )
    search_default_limit: int = Field(default=20, ge=1, le=1000)

    # Summary hierarchy
    hierarchy_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="A hierarchy younger than this is returned without rebuilding",
    )
    max_sections: int = Field(default=3, ge=1, le=50)
    section_cluster_size: int | None = Field(
        default=None,
        ge=1,
        description="Minimum NODE summaries per SECTION; unset means ceil(n / max_sections)",
    )
    clustering: Literal["contiguous", "embedding"] = "contiguous"
    cluster_similarity_threshold: float = Field(
        default=0.75,
        ge=0.0,
        le=1.0,
        description="Cosine similarity a NODE needs to join an existing cluster",
    )

    log_level: str = "INFO"

    @field_validator("root_path", "database_path")
    @classmethod
    def expand_home(cls, v: str) -> str:
        return str(Path(v).expanduser()) if v.startswith("~") else v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def require_openai_key(self) -> Self:
        """Reject an "openai" provider without an API key."""
        if self.openai_api_key:
            return self
        for field in ("embedding_provider", "summarizer_provider"):
            if getattr(self, field) == "openai":
                raise ValueError(
                    f"OpenAI API key is required when {field}='openai'. "
                    "Set MEMORY_BANK_OPENAI_API_KEY environment variable."
                )
        return self
