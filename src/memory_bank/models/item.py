"""Item and search models."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


def make_item_id(project_name: str, name: str) -> str:
    """Build the stable id of an item from its project and name."""
    return f"{project_name}:{name}"


class Item(BaseModel):
    """A stored note belonging to a project."""

    project_name: str
    name: str
    text: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_accessed_at: datetime | None = None
    salience: float = Field(default=0.5, ge=0.0, le=1.0)
    frequency: int = Field(default=0, ge=0)
    embedding: list[float] | None = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, tags: list[str]) -> list[str]:
        """Tags behave as a set: de-duplicated and sorted."""
        return sorted({tag.strip() for tag in tags if tag and tag.strip()})

    @property
    def id(self) -> str:
        """Stable item id."""
        return make_item_id(self.project_name, self.name)


class SearchFilters(BaseModel):
    """Filters applied by the vector index."""

    project_name: str | None = None
    # Match-any semantics
    tags: list[str] | None = None


class RankingWeights(BaseModel):
    """Weights of the combined ranking score."""

    semantic: float = Field(default=0.4, ge=0.0)
    recency: float = Field(default=0.2, ge=0.0)
    frequency: float = Field(default=0.2, ge=0.0)
    salience: float = Field(default=0.2, ge=0.0)
    time_decay_days: float = Field(default=30.0, gt=0.0)


class ScoreBreakdown(BaseModel):
    """Component scores of a ranked search result."""

    semantic: float
    recency: float
    frequency: float
    salience: float
    time_decay: float
    combined: float


class SearchResult(BaseModel):
    """Search result with component scores."""

    item: Item
    scores: ScoreBreakdown
    snippet: str = ""
