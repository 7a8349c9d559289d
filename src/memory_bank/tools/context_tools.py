"""Context compilation MCP tools."""

import logging
from dataclasses import asdict
from typing import Any

from memory_bank.exceptions import (
    CollaboratorUnavailableError,
    NotFoundError,
    ValidationError,
)
from memory_bank.models.context import CompiledContext, ContextBudget, ContextOptions
from memory_bank.services.context_assembler import ContextAssembler
from memory_bank.tools import create_error_response

logger = logging.getLogger(__name__)


def compiled_context_to_dict(context: CompiledContext) -> dict[str, Any]:
    """Serialize a compiled context for a tool response."""
    items = []
    for item in context.items:
        data = asdict(item)
        data["type"] = item.type.value
        if item.metadata.last_accessed:
            data["metadata"]["last_accessed"] = item.metadata.last_accessed.isoformat()
        items.append(data)

    return {
        "id": context.id,
        "query": context.query,
        "budget": context.budget.model_dump(),
        "items": items,
        "total_tokens": context.total_tokens,
        "compression_applied": context.compression_applied,
        "compression_ratio": context.compression_ratio,
        "compile_duration_ms": context.compile_duration_ms,
        "degraded": context.degraded,
        "created_at": context.created_at.isoformat(),
    }


async def context_compile(
    assembler: ContextAssembler,
    query: str,
    max_tokens: int = 4000,
    reserved_tokens: int = 0,
    project_name: str | None = None,
    include_files: bool = True,
    include_summaries: bool = True,
    compression_method: str = "llmlingua",
    prioritize_recent: bool = True,
    max_relevance_threshold: float = 0.5,
) -> dict[str, Any]:
    """Compile a token-budgeted context for a query.

    Args:
        assembler: Context assembler instance
        query: Query the context is assembled for
        max_tokens: Total token budget
        reserved_tokens: Tokens kept free for the prompt and answer
        project_name: Restrict candidates to one project
        include_files: Include ranked items
        include_summaries: Include SECTION and PROJECT summaries
        compression_method: llmlingua/summarization/extraction/truncation
        prioritize_recent: Prefer recently accessed items
        max_relevance_threshold: Minimum relevance of a candidate (0.0-1.0)

    Returns:
        Selected items, token totals and compression details
    """
    try:
        budget = ContextBudget(max_tokens=max_tokens, reserved_tokens=reserved_tokens)
        options = ContextOptions(
            project_name=project_name,
            include_files=include_files,
            include_summaries=include_summaries,
            compression_method=compression_method,
            prioritize_recent=prioritize_recent,
            max_relevance_threshold=max_relevance_threshold,
        )
        context = await assembler.compile(query, budget, options)

    except NotFoundError as e:
        return create_error_response(message=str(e), error_type="NotFoundError")
    except ValueError as e:
        # memory_bank and pydantic validation errors are both ValueErrors
        return create_error_response(message=str(e), error_type="ValidationError")
    except CollaboratorUnavailableError as e:
        return create_error_response(
            message=str(e),
            error_type="CollaboratorUnavailableError",
            details={"collaborator": e.collaborator},
        )
    except Exception as e:
        logger.exception("context_compile failed")
        return create_error_response(
            message=f"Failed to compile context: {e}", error_type="RuntimeError"
        )

    return compiled_context_to_dict(context)


async def context_recommend_budget(
    assembler: ContextAssembler, query: str, context_type: str = "search"
) -> dict[str, Any]:
    """Recommend a token budget for a query and use case.

    Args:
        assembler: Context assembler instance
        query: Query text
        context_type: search/summarization/qa

    Returns:
        Recommended budget
    """
    try:
        budget = assembler.recommend_budget(query, context_type)  # type: ignore[arg-type]
    except ValidationError as e:
        return create_error_response(
            message=str(e),
            error_type="ValidationError",
            details={"valid_context_types": ["search", "summarization", "qa"]},
        )

    return budget.model_dump()
