"""Summary hierarchy compilation (NODE -> SECTION -> PROJECT)."""

import logging
from collections.abc import Awaitable, Sequence
from datetime import datetime, timezone
from typing import TypeVar

from memory_bank.exceptions import (
    CollaboratorUnavailableError,
    NotFoundError,
    ValidationError,
)
from memory_bank.models.item import make_item_id
from memory_bank.models.summary import (
    HierarchyOptions,
    Summary,
    SummaryHierarchy,
    SummaryLevel,
    SummaryType,
    make_summary_id,
)
from memory_bank.services.clustering import Clusterer, ContiguousClusterer
from memory_bank.services.embedding_service import EmbeddingService
from memory_bank.stores.base import ContentStore, SummaryStore
from memory_bank.summarizers.base import Summarizer
from memory_bank.utils.summarization import truncate_to_tokens

logger = logging.getLogger(__name__)

T = TypeVar("T")

SECTION_TOKEN_FACTOR = 2
PROJECT_TOKEN_FACTOR = 3


async def _call(collaborator: str, awaitable: Awaitable[T]) -> T:
    """Await a store call, re-raising unexpected failures as unavailability."""
    try:
        return await awaitable
    except (NotFoundError, ValidationError):
        raise
    except Exception as e:
        raise CollaboratorUnavailableError(collaborator, str(e)) from e


class SummaryCompiler:
    """Builds, refreshes and reads the summary hierarchy of a project."""

    def __init__(
        self,
        content_store: ContentStore,
        summary_store: SummaryStore,
        summarizer: Summarizer,
        embedding_service: EmbeddingService,
        clusterer: Clusterer | None = None,
        ttl_seconds: int = 3600,
    ) -> None:
        """Initialize summary compiler.

        Args:
            content_store: Source of item texts
            summary_store: Persistence for summaries
            summarizer: Level-aware summarizer (also counts tokens)
            embedding_service: Embeddings for NODE summaries
            clusterer: NODE grouping policy (contiguous by default)
            ttl_seconds: Age under which a stored hierarchy is reused
        """
        self.content_store = content_store
        self.summary_store = summary_store
        self.summarizer = summarizer
        self.embedding_service = embedding_service
        self.clusterer = clusterer or ContiguousClusterer()
        self.ttl_seconds = ttl_seconds

    async def compile(
        self, project_name: str, options: HierarchyOptions | None = None
    ) -> SummaryHierarchy:
        """Compile the summary hierarchy of a project.

        Args:
            project_name: Project to compile
            options: Compilation options

        Returns:
            The stored hierarchy if still fresh, else a newly built one

        Raises:
            NotFoundError: If the project does not exist or has no items
            CollaboratorUnavailableError: If a store fails
        """
        options = options or HierarchyOptions()
        now = datetime.now(timezone.utc)

        if not options.force_recompile:
            existing = await self._existing_hierarchy(project_name)
            if existing and self._is_fresh(existing, now):
                logger.debug("Reusing fresh hierarchy of %s", project_name)
                return existing

        names = await _call("ContentStore", self.content_store.list(project_name))
        if not names:
            raise NotFoundError(f"Project has no items: {project_name}")

        nodes = await self._build_nodes(project_name, names, options, now)
        if not nodes:
            raise NotFoundError(f"Project has no non-empty items: {project_name}")

        sections = await self._build_sections(project_name, nodes, options, now)
        root = await self._build_root(project_name, sections, options, now)

        hierarchy = self._assemble(project_name, root, sections, nodes, now)

        for summary in hierarchy.all_summaries():
            await _call("SummaryStore", self.summary_store.upsert(summary))
        pruned = await _call(
            "SummaryStore",
            self.summary_store.prune(
                project_name, [s.id for s in hierarchy.all_summaries()]
            ),
        )

        logger.info(
            "Compiled hierarchy of %s: %d nodes, %d sections, %d tokens (%d pruned)",
            project_name,
            len(nodes),
            len(sections),
            hierarchy.total_tokens,
            pruned,
        )
        return hierarchy

    async def refresh(
        self, project_name: str, changed_item_ids: Sequence[str]
    ) -> SummaryHierarchy:
        """Rebuild the hierarchy if any summary derives from a changed item.

        Args:
            project_name: Project to refresh
            changed_item_ids: Ids (`project:name`) of changed items

        Returns:
            The stored hierarchy when nothing is stale, else a rebuilt one
        """
        stale = await _call(
            "SummaryStore", self.summary_store.stale(project_name, changed_item_ids)
        )

        if not stale:
            existing = await self._existing_hierarchy(project_name)
            if existing:
                return existing

        logger.info(
            "Rebuilding hierarchy of %s (%d stale summaries)", project_name, len(stale)
        )
        return await self.compile(project_name, HierarchyOptions(force_recompile=True))

    async def get_optimal_level(self, project_name: str, max_tokens: int) -> list[Summary]:
        """Pick the most detailed level whose summaries fit `max_tokens`.

        The PROJECT summary is returned even when it does not fit.

        Raises:
            ValidationError: If max_tokens is negative
            NotFoundError: If the project has no stored hierarchy
        """
        if max_tokens < 0:
            raise ValidationError("max_tokens must be non-negative")

        hierarchy = await _call("SummaryStore", self.summary_store.hierarchy(project_name))

        if sum(n.token_count for n in hierarchy.nodes) <= max_tokens:
            return hierarchy.nodes
        if sum(s.token_count for s in hierarchy.sections) <= max_tokens:
            return hierarchy.sections
        return [hierarchy.root]

    async def _existing_hierarchy(self, project_name: str) -> SummaryHierarchy | None:
        try:
            return await _call("SummaryStore", self.summary_store.hierarchy(project_name))
        except NotFoundError:
            return None

    def _is_fresh(self, hierarchy: SummaryHierarchy, now: datetime) -> bool:
        last_updated = hierarchy.last_updated
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)
        return (now - last_updated).total_seconds() < self.ttl_seconds

    async def _summarize(
        self, text: str, level: SummaryLevel, target_tokens: int, focus_areas: Sequence[str]
    ) -> tuple[str, bool]:
        """Summarize text, falling back to truncation when the summarizer fails.

        Returns:
            Tuple of (summary text, degraded)
        """
        try:
            summary = await self.summarizer.summarize(
                text,
                level=level,
                target_tokens=target_tokens,
                style="structured",
                focus_areas=focus_areas,
            )
            return summary, False
        except Exception as e:
            logger.warning(
                "Summarizer failed at %s level, truncating instead: %s", level.value, e
            )
            return truncate_to_tokens(text, target_tokens, self.summarizer.count_tokens), True

    async def _embed_nodes(self, project_name: str, nodes: list[Summary]) -> list[Summary]:
        """Attach embeddings to NODE summaries in one batch.

        An embedder failure leaves every node without an embedding.
        """
        if not nodes:
            return nodes
        try:
            vectors = await self.embedding_service.generate_batch([n.text for n in nodes])
        except (CollaboratorUnavailableError, ValidationError) as e:
            logger.warning("No NODE embeddings for %s: %s", project_name, e)
            return nodes
        return [n.model_copy(update={"embedding": v}) for n, v in zip(nodes, vectors, strict=True)]

    async def _build_nodes(
        self,
        project_name: str,
        names: list[str],
        options: HierarchyOptions,
        now: datetime,
    ) -> list[Summary]:
        max_tokens = options.max_tokens_per_summary
        nodes = []

        for name in names:
            text = await _call("ContentStore", self.content_store.load(project_name, name))
            if not text.strip():
                continue

            original_tokens = self.summarizer.count_tokens(text)
            if original_tokens <= max_tokens:
                summary_text, degraded = text, False
                summary_type = SummaryType.EXTRACTIVE
            else:
                summary_text, degraded = await self._summarize(
                    text, SummaryLevel.NODE, max_tokens, options.focus_areas
                )
                summary_type = SummaryType.ABSTRACTIVE

            summary_id = make_summary_id(project_name, SummaryLevel.NODE, name)
            token_count = self.summarizer.count_tokens(summary_text)
            nodes.append(
                Summary(
                    id=summary_id,
                    project_name=project_name,
                    level=SummaryLevel.NODE,
                    summary_type=summary_type,
                    text=summary_text,
                    source_item_ids=[make_item_id(project_name, name)],
                    token_count=token_count,
                    compression_ratio=token_count / original_tokens if original_tokens else 1.0,
                    created_at=now,
                    updated_at=now,
                    degraded=degraded,
                )
            )

        return await self._embed_nodes(project_name, nodes)

    async def _build_sections(
        self,
        project_name: str,
        nodes: list[Summary],
        options: HierarchyOptions,
        now: datetime,
    ) -> list[Summary]:
        target = options.max_tokens_per_summary * SECTION_TOKEN_FACTOR
        sections = []

        for i, group in enumerate(self.clusterer.cluster(nodes)):
            text, degraded = await self._summarize(
                "\n\n".join(n.text for n in group),
                SummaryLevel.SECTION,
                target,
                options.focus_areas,
            )
            child_tokens = sum(n.token_count for n in group)
            token_count = self.summarizer.count_tokens(text)
            sections.append(
                Summary(
                    id=make_summary_id(project_name, SummaryLevel.SECTION, f"section-{i}"),
                    project_name=project_name,
                    level=SummaryLevel.SECTION,
                    summary_type=SummaryType.HIERARCHICAL,
                    text=text,
                    source_item_ids=[src for n in group for src in n.source_item_ids],
                    child_summary_ids=[n.id for n in group],
                    token_count=token_count,
                    compression_ratio=token_count / child_tokens if child_tokens else 1.0,
                    created_at=now,
                    updated_at=now,
                    degraded=degraded,
                )
            )

        return sections

    async def _build_root(
        self,
        project_name: str,
        sections: list[Summary],
        options: HierarchyOptions,
        now: datetime,
    ) -> Summary:
        text, degraded = await self._summarize(
            "\n\n".join(s.text for s in sections),
            SummaryLevel.PROJECT,
            options.max_tokens_per_summary * PROJECT_TOKEN_FACTOR,
            options.focus_areas,
        )
        child_tokens = sum(s.token_count for s in sections)
        token_count = self.summarizer.count_tokens(text)

        return Summary(
            id=make_summary_id(project_name, SummaryLevel.PROJECT, "overview"),
            project_name=project_name,
            level=SummaryLevel.PROJECT,
            summary_type=SummaryType.HIERARCHICAL,
            text=text,
            source_item_ids=[src for s in sections for src in s.source_item_ids],
            child_summary_ids=[s.id for s in sections],
            token_count=token_count,
            compression_ratio=token_count / child_tokens if child_tokens else 1.0,
            created_at=now,
            updated_at=now,
            degraded=degraded,
        )

    def _assemble(
        self,
        project_name: str,
        root: Summary,
        sections: list[Summary],
        nodes: list[Summary],
        now: datetime,
    ) -> SummaryHierarchy:
        node_tokens = sum(n.token_count for n in nodes)
        return SummaryHierarchy(
            project_name=project_name,
            root=root,
            sections=sections,
            nodes=nodes,
            total_tokens=root.token_count
            + sum(s.token_count for s in sections)
            + node_tokens,
            compression_ratio=root.token_count / node_tokens if node_tokens else 1.0,
            last_updated=now,
        )
