"""MCP tool functions.

Tools never raise: domain errors become a dict with `"error": True` and an
`error_type` naming the exception class, so MCP clients can branch on it.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from memory_bank.exceptions import CollaboratorUnavailableError, NotFoundError

__all__ = ["create_error_response", "error_response_for"]

logger = logging.getLogger(__name__)


def create_error_response(
    message: str,
    error_type: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the error payload returned by a tool.

    Args:
        message: Human-readable error message
        error_type: NotFoundError, ValidationError,
            CollaboratorUnavailableError or RuntimeError
        details: Extra machine-readable fields

    Returns:
        Error payload with a UTC timestamp
    """
    response: dict[str, Any] = {
        "error": True,
        "error_type": error_type,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        response["details"] = details
    return response


def error_response_for(e: Exception, action: str) -> dict[str, Any]:
    """Map an exception raised while performing `action` to an error payload.

    Validation failures from pydantic count as ValidationError since they
    are ValueErrors too. Anything unexpected is logged with its traceback.
    """
    if isinstance(e, NotFoundError):
        return create_error_response(str(e), "NotFoundError")
    if isinstance(e, ValueError):
        return create_error_response(str(e), "ValidationError")
    if isinstance(e, CollaboratorUnavailableError):
        return create_error_response(
            str(e), "CollaboratorUnavailableError", {"collaborator": e.collaborator}
        )
    logger.exception("Failed to %s", action)
    return create_error_response(f"Failed to {action}: {e}", "RuntimeError")
