"""Validation utilities for input sanitization and security.

Reusable validators shared by the services and the tool layer. All of
them raise `ValidationError` before any I/O happens.
"""

import re
from typing import TYPE_CHECKING

from memory_bank.exceptions import ValidationError

if TYPE_CHECKING:
    from memory_bank.config.settings import Settings

_NAME_PATTERN = re.compile(r"^[\w][\w.\- ]{0,199}$")


def validate_name(name: str, field_name: str = "name") -> str:
    """Validate a project or item name.

    Names become directory and file names, so separators and
    traversal segments are rejected.

    Args:
        name: The name to validate
        field_name: Name of the field for error messages

    Returns:
        The validated name

    Raises:
        ValidationError: If the name is empty or unsafe
    """
    if not name or not isinstance(name, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    if name in {".", ".."} or ".." in name or "/" in name or "\\" in name:
        raise ValidationError(f"Invalid {field_name}: {name!r}")

    if not _NAME_PATTERN.match(name):
        raise ValidationError(
            f"Invalid {field_name}: {name!r}. Use letters, digits, '.', '-', '_' or spaces"
        )

    return name


def validate_content(
    content: str,
    settings: "Settings | None" = None,
    max_length: int | None = None,
) -> str:
    """Validate content is non-empty and within size limits.

    Args:
        content: The content string to validate
        settings: Optional settings object for max length
        max_length: Optional explicit max length (overrides settings)

    Returns:
        The validated content string

    Raises:
        ValidationError: If content is empty or exceeds max length
    """
    if not content or not isinstance(content, str) or not content.strip():
        raise ValidationError("Content cannot be empty or whitespace only")

    limit = max_length
    if limit is None and settings is not None:
        limit = settings.max_content_length

    if limit is not None and len(content) > limit:
        raise ValidationError(
            f"Content exceeds maximum length of {limit:,} characters "
            f"(got {len(content):,})"
        )

    return content


def validate_query(query: str) -> str:
    """Validate a search query is non-empty.

    Raises:
        ValidationError: If the query is empty or whitespace only
    """
    if not query or not isinstance(query, str) or not query.strip():
        raise ValidationError("Query cannot be empty")
    return query


def validate_salience(salience: float) -> float:
    """Validate a salience score lies in [0, 1]."""
    if not 0.0 <= salience <= 1.0:
        raise ValidationError("salience must be between 0.0 and 1.0")
    return salience
