"""Abstract collaborator interfaces consumed by the core services."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from memory_bank.models.item import Item, SearchFilters
from memory_bank.models.summary import Summary, SummaryHierarchy, SummaryLevel


class ContentStore(ABC):
    """Raw item text persistence."""

    @abstractmethod
    async def list_projects(self) -> list[str]:
        """List project names."""
        pass

    @abstractmethod
    async def list(self, project_name: str) -> list[str]:
        """List item names of a project.

        Raises:
            NotFoundError: If the project does not exist
        """
        pass

    @abstractmethod
    async def load(self, project_name: str, name: str) -> str:
        """Load the text of an item.

        Raises:
            NotFoundError: If the item does not exist
        """
        pass

    @abstractmethod
    async def save(self, project_name: str, name: str, text: str) -> None:
        """Create or overwrite the text of an item."""
        pass

    @abstractmethod
    async def delete(self, project_name: str, name: str) -> bool:
        """Delete an item. Returns False if it did not exist."""
        pass


class VectorIndex(ABC):
    """Nearest-neighbour search over item embeddings with metadata filters."""

    @abstractmethod
    async def upsert(self, item: Item) -> None:
        """Insert or replace an item together with its embedding."""
        pass

    @abstractmethod
    async def get(self, project_name: str, name: str) -> Item:
        """Get an item.

        Raises:
            NotFoundError: If the item is not indexed
        """
        pass

    @abstractmethod
    async def delete(self, project_name: str, name: str) -> bool:
        """Remove an item. Returns False if it was not indexed."""
        pass

    @abstractmethod
    async def nearest(
        self, vector: list[float], filters: SearchFilters | None, limit: int
    ) -> list[tuple[Item, float]]:
        """Return up to `limit` items closest to `vector`.

        Returns:
            (item, similarity) pairs, most similar first, similarity in [0, 1]
        """
        pass

    @abstractmethod
    async def touch_access(self, project_name: str, name: str) -> None:
        """Increment an item's frequency and set its last access time."""
        pass


class SummaryStore(ABC):
    """Persistence for the summary hierarchy."""

    @abstractmethod
    async def upsert(self, summary: Summary) -> None:
        """Insert or replace a summary."""
        pass

    @abstractmethod
    async def get(self, summary_id: str) -> Summary:
        """Get a summary by id.

        Raises:
            NotFoundError: If the summary does not exist
        """
        pass

    @abstractmethod
    async def delete(self, summary_id: str) -> bool:
        """Delete a summary. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def by_level(self, project_name: str, level: SummaryLevel) -> list[Summary]:
        """List a project's summaries at one level."""
        pass

    @abstractmethod
    async def hierarchy(self, project_name: str) -> SummaryHierarchy:
        """Assemble the stored hierarchy of a project.

        Raises:
            NotFoundError: If the project has no PROJECT-level summary
        """
        pass

    @abstractmethod
    async def stale(
        self, project_name: str, changed_item_ids: Sequence[str]
    ) -> list[Summary]:
        """List summaries derived from any of the changed items."""
        pass

    @abstractmethod
    async def search(
        self,
        project_name: str,
        query: str,
        limit: int = 10,
        levels: Sequence[SummaryLevel] | None = None,
    ) -> list[tuple[Summary, float]]:
        """Rank a project's summaries by query term relevance.

        Returns:
            (summary, relevance) pairs with relevance > 0, best first
        """
        pass

    @abstractmethod
    async def prune(self, project_name: str, keep_ids: Sequence[str]) -> int:
        """Delete a project's summaries whose id is not in `keep_ids`.

        Returns:
            Number of deleted summaries
        """
        pass
