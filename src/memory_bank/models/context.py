"""Context compilation models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

CompressionMethod = Literal["llmlingua", "summarization", "extraction", "truncation"]
ContextType = Literal["search", "summarization", "qa"]


class ContextItemType(str, Enum):
    """Origin of a context item."""

    FILE = "file"
    SUMMARY = "summary"


class ContextBudget(BaseModel):
    """Token accounting for one context compilation.

    `available_tokens` is derived from `max_tokens - reserved_tokens` when
    omitted. The assembler rejects budgets whose available tokens are
    negative or inconsistent.
    """

    max_tokens: int = Field(ge=0)
    reserved_tokens: int = Field(default=0, ge=0)
    available_tokens: int
    used_tokens: int = Field(default=0, ge=0)
    compression_target: float = Field(default=0.3, gt=0.0, lt=1.0)

    @model_validator(mode="before")
    @classmethod
    def derive_available_tokens(cls, data: Any) -> Any:
        """Fill in available_tokens from max and reserved tokens."""
        if isinstance(data, dict) and data.get("available_tokens") is None:
            data = {
                **data,
                "available_tokens": data.get("max_tokens", 0) - data.get("reserved_tokens", 0),
            }
        return data


class ContextOptions(BaseModel):
    """Options for compiling a context."""

    project_name: str | None = None
    include_files: bool = True
    include_summaries: bool = True
    compression_method: CompressionMethod = "llmlingua"
    prioritize_recent: bool = True
    max_relevance_threshold: float = Field(default=0.5, ge=0.0, le=1.0)


@dataclass
class ContextItemMetadata:
    """Metadata carried by a context item."""

    project_name: str
    importance: float
    file_name: str | None = None
    summary_level: str | None = None
    last_accessed: datetime | None = None
    compressed: bool = False
    degraded: bool = False


@dataclass
class ContextItem:
    """One block of text selected into a compiled context."""

    id: str
    content: str
    token_count: int
    relevance_score: float
    type: ContextItemType
    metadata: ContextItemMetadata


@dataclass
class CompressionResult:
    """Result of compressing one text block."""

    text: str
    token_count: int
    original_tokens: int
    achieved_ratio: float
    method: str


@dataclass
class CompiledContext:
    """Result of a context compilation. Never persisted."""

    id: str
    query: str
    budget: ContextBudget
    items: list[ContextItem]
    total_tokens: int
    compression_applied: bool
    compile_duration_ms: float
    compression_ratio: float | None = None
    degraded: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
