"""Summary hierarchy models."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class SummaryLevel(str, Enum):
    """Summary hierarchy level."""

    NODE = "node"
    SECTION = "section"
    PROJECT = "project"


class SummaryType(str, Enum):
    """How a summary text was produced."""

    EXTRACTIVE = "extractive"
    ABSTRACTIVE = "abstractive"
    HIERARCHICAL = "hierarchical"


def make_summary_id(project_name: str, level: SummaryLevel, identifier: str) -> str:
    """Build a deterministic summary id so recompiles overwrite in place."""
    return f"{project_name}:{level.value}:{identifier}"


class Summary(BaseModel):
    """Summary entry at one level of a project hierarchy."""

    id: str
    project_name: str
    level: SummaryLevel
    summary_type: SummaryType = SummaryType.HIERARCHICAL
    text: str
    source_item_ids: list[str] = Field(default_factory=list)
    child_summary_ids: list[str] = Field(default_factory=list)
    token_count: int = Field(default=0, ge=0)
    compression_ratio: float = Field(default=1.0, ge=0.0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    embedding: list[float] | None = None
    # Set when a fallback text replaced the summarizer output
    degraded: bool = False


class SummaryHierarchy(BaseModel):
    """NODE -> SECTION -> PROJECT tree of a project."""

    project_name: str
    root: Summary
    sections: list[Summary] = Field(default_factory=list)
    nodes: list[Summary] = Field(default_factory=list)
    total_tokens: int = 0
    compression_ratio: float = 1.0
    last_updated: datetime

    @property
    def degraded(self) -> bool:
        """True if any summary in the tree used a fallback text."""
        return any(s.degraded for s in [self.root, *self.sections, *self.nodes])

    def all_summaries(self) -> list[Summary]:
        """Root first, then sections, then nodes."""
        return [self.root, *self.sections, *self.nodes]


class HierarchyOptions(BaseModel):
    """Options for compiling a summary hierarchy."""

    force_recompile: bool = False
    max_tokens_per_summary: int = Field(default=1000, ge=1)
    compression_ratio: float = Field(default=0.3, gt=0.0, le=1.0)
    focus_areas: list[str] = Field(default_factory=list)
