"""Item-related MCP tools."""

import logging
from typing import Any

from memory_bank.exceptions import (
    CollaboratorUnavailableError,
    NotFoundError,
    ValidationError,
)
from memory_bank.models.item import Item, RankingWeights, SearchFilters
from memory_bank.services.hybrid_ranker import HybridRanker
from memory_bank.services.memory_service import MemoryService
from memory_bank.tools import create_error_response

logger = logging.getLogger(__name__)


def item_to_dict(item: Item, include_text: bool = True) -> dict[str, Any]:
    """Serialize an item for a tool response (embedding omitted)."""
    data = item.model_dump(mode="json", exclude={"embedding", "text"})
    data["id"] = item.id
    if include_text:
        data["text"] = item.text
    return data


async def memory_write(
    service: MemoryService,
    project_name: str,
    name: str,
    text: str,
    tags: list[str] | None = None,
    salience: float = 0.5,
) -> dict[str, Any]:
    """Write a new item with automatic embedding generation.

    Args:
        service: Memory service instance
        project_name: Project the item belongs to
        name: Item name, unique within the project
        text: Item text
        tags: Tags for filtering
        salience: Importance in [0, 1]

    Returns:
        Created item id and timestamps
    """
    try:
        item = await service.write(project_name, name, text, tags=tags, salience=salience)
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except CollaboratorUnavailableError as e:
        return create_error_response(
            message=str(e),
            error_type="CollaboratorUnavailableError",
            details={"collaborator": e.collaborator},
        )
    except Exception as e:
        logger.exception("memory_write failed")
        return create_error_response(
            message=f"Failed to write item: {e}", error_type="RuntimeError"
        )

    return {
        "id": item.id,
        "project_name": item.project_name,
        "name": item.name,
        "created_at": item.created_at.isoformat(),
    }


async def memory_update(
    service: MemoryService,
    project_name: str,
    name: str,
    text: str | None = None,
    tags: list[str] | None = None,
    salience: float | None = None,
) -> dict[str, Any]:
    """Update an existing item; a new text regenerates its embedding.

    Args:
        service: Memory service instance
        project_name: Project of the item
        name: Item name
        text: New text
        tags: New tags
        salience: New salience

    Returns:
        Updated item id and timestamp
    """
    try:
        item = await service.update(
            project_name, name, text=text, tags=tags, salience=salience
        )
    except NotFoundError as e:
        return create_error_response(message=str(e), error_type="NotFoundError")
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except CollaboratorUnavailableError as e:
        return create_error_response(
            message=str(e),
            error_type="CollaboratorUnavailableError",
            details={"collaborator": e.collaborator},
        )
    except Exception as e:
        logger.exception("memory_update failed")
        return create_error_response(
            message=f"Failed to update item: {e}", error_type="RuntimeError"
        )

    return {"id": item.id, "updated_at": item.updated_at.isoformat()}


async def memory_read(service: MemoryService, project_name: str, name: str) -> dict[str, Any]:
    """Read an item and record the access.

    Returns:
        Item with text, tags, salience and access statistics
    """
    try:
        item = await service.read(project_name, name)
    except NotFoundError as e:
        return create_error_response(message=str(e), error_type="NotFoundError")
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")

    return item_to_dict(item)


async def memory_delete(service: MemoryService, project_name: str, name: str) -> dict[str, Any]:
    """Delete an item.

    Returns:
        Deletion flag
    """
    try:
        deleted = await service.delete(project_name, name)
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")

    if not deleted:
        return create_error_response(
            message=f"Item not found: {project_name}/{name}", error_type="NotFoundError"
        )
    return {"deleted": True, "id": f"{project_name}:{name}"}


async def memory_list(service: MemoryService, project_name: str | None = None) -> dict[str, Any]:
    """List projects, or the item names of one project.

    Args:
        service: Memory service instance
        project_name: Project to list; all projects when omitted

    Returns:
        Project names or item names
    """
    try:
        if project_name is None:
            projects = await service.list_projects()
            return {"projects": projects, "total": len(projects)}

        names = await service.list_items(project_name)
    except NotFoundError as e:
        return create_error_response(message=str(e), error_type="NotFoundError")
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")

    return {"project_name": project_name, "items": names, "total": len(names)}


async def memory_search(
    ranker: HybridRanker,
    query: str,
    project_name: str | None = None,
    tags: list[str] | None = None,
    limit: int = 20,
    semantic_weight: float = 0.4,
    recency_weight: float = 0.2,
    frequency_weight: float = 0.2,
    salience_weight: float = 0.2,
    time_decay_days: float = 30.0,
) -> dict[str, Any]:
    """Search items by hybrid score.

    Args:
        ranker: Hybrid ranker instance
        query: Search query text
        project_name: Restrict to one project
        tags: Match items carrying any of these tags
        limit: Maximum number of results
        semantic_weight: Weight of semantic similarity
        recency_weight: Weight of recency
        frequency_weight: Weight of access frequency
        salience_weight: Weight of decayed salience
        time_decay_days: Salience decay time constant in days

    Returns:
        Ranked results with component scores and snippets
    """
    try:
        weights = RankingWeights(
            semantic=semantic_weight,
            recency=recency_weight,
            frequency=frequency_weight,
            salience=salience_weight,
            time_decay_days=time_decay_days,
        )
    except ValueError as e:
        return create_error_response(message=str(e), error_type="ValidationError")

    try:
        results = await ranker.rank(
            query,
            filters=SearchFilters(project_name=project_name, tags=tags),
            weights=weights,
            limit=limit,
        )
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except CollaboratorUnavailableError as e:
        return create_error_response(
            message=str(e),
            error_type="CollaboratorUnavailableError",
            details={"collaborator": e.collaborator},
        )
    except Exception as e:
        logger.exception("memory_search failed")
        return create_error_response(
            message=f"Failed to search items: {e}", error_type="RuntimeError"
        )

    return {
        "results": [
            {
                **item_to_dict(r.item, include_text=False),
                "snippet": r.snippet,
                "scores": r.scores.model_dump(),
            }
            for r in results
        ],
        "total": len(results),
    }
