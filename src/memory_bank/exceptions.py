"""Custom exceptions for memory-bank."""


class MemoryBankError(Exception):
    """Base class for memory-bank errors."""

    pass


class NotFoundError(MemoryBankError):
    """Raised when a requested item, summary or project is not found."""

    pass


class ValidationError(MemoryBankError, ValueError):
    """Raised when validation fails (before any I/O)."""

    pass


class CollaboratorUnavailableError(MemoryBankError):
    """Raised when an embedder, index or store cannot serve a request.

    Fatal for the enclosing operation; never retried internally.
    """

    def __init__(self, collaborator: str, message: str) -> None:
        self.collaborator = collaborator
        super().__init__(f"{collaborator} unavailable: {message}")
