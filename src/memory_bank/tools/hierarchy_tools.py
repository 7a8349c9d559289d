"""Summary hierarchy MCP tools."""

from typing import Any

from memory_bank.db.repositories.summary_repository import SqliteSummaryStore
from memory_bank.models.item import make_item_id
from memory_bank.models.summary import HierarchyOptions, Summary, SummaryHierarchy
from memory_bank.services.summary_compiler import SummaryCompiler
from memory_bank.tools import error_response_for
from memory_bank.utils.validators import validate_name


def summary_to_dict(summary: Summary) -> dict[str, Any]:
    """Serialize a summary for a tool response (embedding omitted)."""
    return summary.model_dump(mode="json", exclude={"embedding"})


def hierarchy_to_dict(hierarchy: SummaryHierarchy) -> dict[str, Any]:
    return {
        "project_name": hierarchy.project_name,
        "root": summary_to_dict(hierarchy.root),
        "sections": [summary_to_dict(s) for s in hierarchy.sections],
        "nodes": [summary_to_dict(n) for n in hierarchy.nodes],
        "total_tokens": hierarchy.total_tokens,
        "compression_ratio": hierarchy.compression_ratio,
        "last_updated": hierarchy.last_updated.isoformat(),
        "degraded": hierarchy.degraded,
    }


async def hierarchy_compile(
    compiler: SummaryCompiler,
    project_name: str,
    force_recompile: bool = False,
    max_tokens_per_summary: int = 1000,
    focus_areas: list[str] | None = None,
) -> dict[str, Any]:
    """Compile the NODE/SECTION/PROJECT summary hierarchy of a project.

    Args:
        compiler: Summary compiler instance
        project_name: Project to compile
        force_recompile: Ignore a fresh stored hierarchy
        max_tokens_per_summary: Token budget of a NODE summary
        focus_areas: Keywords the summaries should emphasize

    Returns:
        The hierarchy with all summaries
    """
    try:
        options = HierarchyOptions(
            force_recompile=force_recompile,
            max_tokens_per_summary=max_tokens_per_summary,
            focus_areas=focus_areas or [],
        )
        hierarchy = await compiler.compile(project_name, options)
    except Exception as e:
        return error_response_for(e, "compile hierarchy")

    return hierarchy_to_dict(hierarchy)


async def hierarchy_refresh(
    compiler: SummaryCompiler, project_name: str, changed_items: list[str]
) -> dict[str, Any]:
    """Rebuild a hierarchy if it derives from any of the changed items.

    Args:
        compiler: Summary compiler instance
        project_name: Project to refresh
        changed_items: Names of changed items

    Returns:
        The current hierarchy
    """
    try:
        changed_ids = [make_item_id(project_name, name) for name in changed_items]
        hierarchy = await compiler.refresh(project_name, changed_ids)
    except Exception as e:
        return error_response_for(e, "refresh hierarchy")

    return hierarchy_to_dict(hierarchy)


async def hierarchy_optimal_level(
    compiler: SummaryCompiler, project_name: str, max_tokens: int
) -> dict[str, Any]:
    """Get the most detailed summary level fitting a token budget.

    Returns:
        Level name, summaries and their token total
    """
    try:
        summaries = await compiler.get_optimal_level(project_name, max_tokens)
    except Exception as e:
        return error_response_for(e, "select summary level")

    total = sum(s.token_count for s in summaries)
    return {
        "level": summaries[0].level.value if summaries else None,
        "summaries": [summary_to_dict(s) for s in summaries],
        "total_tokens": total,
        "fits_budget": total <= max_tokens,
    }


async def hierarchy_stats(store: SqliteSummaryStore, project_name: str) -> dict[str, Any]:
    """Get per-level summary statistics of a project."""
    try:
        validate_name(project_name, "project_name")
        return await store.stats(project_name)
    except Exception as e:
        return error_response_for(e, "read hierarchy stats")
