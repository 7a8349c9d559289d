"""Data models for Memory Bank."""

from memory_bank.models.context import (
    CompiledContext,
    CompressionMethod,
    CompressionResult,
    ContextBudget,
    ContextItem,
    ContextItemMetadata,
    ContextItemType,
    ContextOptions,
    ContextType,
)
from memory_bank.models.item import (
    Item,
    RankingWeights,
    ScoreBreakdown,
    SearchFilters,
    SearchResult,
    make_item_id,
)
from memory_bank.models.summary import (
    HierarchyOptions,
    Summary,
    SummaryHierarchy,
    SummaryLevel,
    SummaryType,
    make_summary_id,
)

__all__ = [
    # Item models
    "Item",
    "SearchFilters",
    "RankingWeights",
    "ScoreBreakdown",
    "SearchResult",
    "make_item_id",
    # Summary models
    "Summary",
    "SummaryHierarchy",
    "SummaryLevel",
    "SummaryType",
    "HierarchyOptions",
    "make_summary_id",
    # Context models
    "CompiledContext",
    "CompressionMethod",
    "CompressionResult",
    "ContextBudget",
    "ContextItem",
    "ContextItemMetadata",
    "ContextItemType",
    "ContextOptions",
    "ContextType",
]
