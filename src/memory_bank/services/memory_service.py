"""Memory service for item writes, reads and deletes."""

import logging
from datetime import datetime, timezone

from memory_bank.exceptions import CollaboratorUnavailableError, NotFoundError, ValidationError
from memory_bank.models.item import Item
from memory_bank.services.embedding_service import EmbeddingService
from memory_bank.stores.base import ContentStore, VectorIndex
from memory_bank.utils.validators import validate_content, validate_name, validate_salience

logger = logging.getLogger(__name__)


class MemoryService:
    """Service keeping the content store and the vector index in step."""

    def __init__(
        self,
        content_store: ContentStore,
        vector_index: VectorIndex,
        embedding_service: EmbeddingService,
        max_content_length: int | None = None,
    ) -> None:
        """Initialize memory service.

        Args:
            content_store: Raw text persistence
            vector_index: Item index with embeddings
            embedding_service: Embedding service
            max_content_length: Maximum characters per item
        """
        self.content_store = content_store
        self.vector_index = vector_index
        self.embedding_service = embedding_service
        self.max_content_length = max_content_length

    async def _exists(self, project_name: str, name: str) -> bool:
        try:
            await self.vector_index.get(project_name, name)
        except NotFoundError:
            return False
        return True

    async def _upsert(self, item: Item) -> None:
        try:
            await self.vector_index.upsert(item)
        except ValidationError:
            raise
        except Exception as e:
            raise CollaboratorUnavailableError("VectorIndex", str(e)) from e

    async def write(
        self,
        project_name: str,
        name: str,
        text: str,
        tags: list[str] | None = None,
        salience: float = 0.5,
    ) -> Item:
        """Write a new item.

        Args:
            project_name: Project the item belongs to
            name: Item name, unique within the project
            text: Item text
            tags: Tags for filtering
            salience: Importance in [0, 1]

        Returns:
            Created item

        Raises:
            ValidationError: If input is invalid or the item already exists
        """
        validate_name(project_name, "project_name")
        validate_name(name, "name")
        validate_content(text, max_length=self.max_content_length)
        validate_salience(salience)

        if await self._exists(project_name, name):
            raise ValidationError(f"Item already exists: {project_name}/{name}. Use update.")

        embedding = await self.embedding_service.generate(text)
        now = datetime.now(timezone.utc)
        item = Item(
            project_name=project_name,
            name=name,
            text=text,
            tags=tags or [],
            created_at=now,
            updated_at=now,
            salience=salience,
            embedding=embedding,
        )

        # content never exists without its index entry
        await self._upsert(item)
        try:
            await self.content_store.save(project_name, name, text)
        except Exception:
            await self.vector_index.delete(project_name, name)
            raise
        logger.info("Wrote item %s", item.id)
        return item

    async def update(
        self,
        project_name: str,
        name: str,
        text: str | None = None,
        tags: list[str] | None = None,
        salience: float | None = None,
    ) -> Item:
        """Update an existing item.

        A new text regenerates the embedding. Access statistics are kept.

        Raises:
            NotFoundError: If the item does not exist
            ValidationError: If input is invalid
        """
        validate_name(project_name, "project_name")
        validate_name(name, "name")
        if text is not None:
            validate_content(text, max_length=self.max_content_length)
        if salience is not None:
            validate_salience(salience)

        existing = await self.vector_index.get(project_name, name)

        updates: dict = {"updated_at": datetime.now(timezone.utc)}
        if text is not None:
            updates["text"] = text
            updates["embedding"] = await self.embedding_service.generate(text)
        if tags is not None:
            updates["tags"] = tags
        if salience is not None:
            updates["salience"] = salience

        # model_validate re-runs the tag normalization
        item = Item.model_validate({**existing.model_dump(), **updates})

        await self._upsert(item)
        if text is not None:
            try:
                await self.content_store.save(project_name, name, text)
            except Exception:
                await self.vector_index.upsert(existing)
                raise
        logger.info("Updated item %s", item.id)
        return item

    async def read(self, project_name: str, name: str) -> Item:
        """Read an item and record the access.

        Raises:
            NotFoundError: If the item does not exist
        """
        text = await self.content_store.load(project_name, name)
        await self.vector_index.touch_access(project_name, name)
        item = await self.vector_index.get(project_name, name)
        return item.model_copy(update={"text": text})

    async def delete(self, project_name: str, name: str) -> bool:
        """Delete an item from the content store and the index.

        Returns:
            True if the item existed in either
        """
        removed_content = await self.content_store.delete(project_name, name)
        removed_index = await self.vector_index.delete(project_name, name)
        if removed_content or removed_index:
            logger.info("Deleted item %s/%s", project_name, name)
        return removed_content or removed_index

    async def list_items(self, project_name: str) -> list[str]:
        """List item names of a project.

        Raises:
            NotFoundError: If the project does not exist
        """
        return await self.content_store.list(project_name)

    async def list_projects(self) -> list[str]:
        """List project names."""
        return await self.content_store.list_projects()
