"""Pytest configuration and fixtures for memory-bank tests."""

from collections.abc import AsyncIterator
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from memory_bank.compressors.extractive import ExtractiveCompressor
from memory_bank.config.settings import Settings
from memory_bank.db.database import Database
from memory_bank.db.repositories.item_repository import SqliteVectorIndex
from memory_bank.db.repositories.summary_repository import SqliteSummaryStore
from memory_bank.embeddings.base import EmbeddingProvider
from memory_bank.embeddings.hashing import HashEmbeddingProvider
from memory_bank.models.item import Item
from memory_bank.services.context_assembler import ContextAssembler
from memory_bank.services.embedding_service import EmbeddingService
from memory_bank.services.hybrid_ranker import HybridRanker
from memory_bank.services.memory_service import MemoryService
from memory_bank.services.summary_compiler import SummaryCompiler
from memory_bank.stores.file_content_store import FileContentStore
from memory_bank.summarizers.extractive import ExtractiveSummarizer

DIMENSIONS = 384


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Test configuration settings."""
    return Settings(
        root_path=str(tmp_path / "projects"),
        database_path=":memory:",
        embedding_provider="hash",
        embedding_dimensions=DIMENSIONS,
        token_counter="estimate",
        log_level="INFO",
    )


@pytest_asyncio.fixture
async def memory_db() -> AsyncIterator[Database]:
    """In-memory database for fast tests."""
    db = Database(database_path=":memory:", embedding_dimensions=DIMENSIONS)
    await db.connect()
    await db.migrate()

    yield db

    await db.close()


@pytest.fixture
def mock_embedding_provider() -> EmbeddingProvider:
    """Mock embedding provider returning a constant vector."""
    mock = AsyncMock(spec=EmbeddingProvider)

    async def embed_side_effect(text: str, *, is_query: bool = False) -> list[float]:
        return [0.1] * DIMENSIONS

    mock.embed.side_effect = embed_side_effect

    async def embed_batch_side_effect(
        texts: list[str], *, is_query: bool = False
    ) -> list[list[float]]:
        return [[0.1] * DIMENSIONS for _ in texts]

    mock.embed_batch.side_effect = embed_batch_side_effect
    mock.dimensions.return_value = DIMENSIONS
    return mock


@pytest.fixture
def hash_embedding_provider() -> HashEmbeddingProvider:
    """Deterministic embedding provider where shared words mean similar vectors."""
    return HashEmbeddingProvider(DIMENSIONS)


@pytest.fixture
def embedding_service(hash_embedding_provider: HashEmbeddingProvider) -> EmbeddingService:
    """Embedding service with the hash provider."""
    return EmbeddingService(provider=hash_embedding_provider)


@pytest.fixture
def content_store(tmp_path: Path) -> FileContentStore:
    """Content store rooted in a temporary directory."""
    return FileContentStore(tmp_path / "projects")


@pytest.fixture
def vector_index(memory_db: Database) -> SqliteVectorIndex:
    """Vector index over the in-memory database."""
    return SqliteVectorIndex(memory_db)


@pytest.fixture
def summary_store(memory_db: Database) -> SqliteSummaryStore:
    """Summary store over the in-memory database."""
    return SqliteSummaryStore(memory_db)


@pytest.fixture
def summarizer() -> ExtractiveSummarizer:
    """Extractive summarizer with the offline token estimator."""
    return ExtractiveSummarizer(counting_method="estimate")


@pytest.fixture
def compressor() -> ExtractiveCompressor:
    """Extractive compressor with the offline token estimator."""
    return ExtractiveCompressor(counting_method="estimate")


@pytest.fixture
def memory_service(
    content_store: FileContentStore,
    vector_index: SqliteVectorIndex,
    embedding_service: EmbeddingService,
) -> MemoryService:
    """Memory service."""
    return MemoryService(
        content_store=content_store,
        vector_index=vector_index,
        embedding_service=embedding_service,
        max_content_length=10_000,
    )


@pytest.fixture
def ranker(embedding_service: EmbeddingService, vector_index: SqliteVectorIndex) -> HybridRanker:
    """Hybrid ranker."""
    return HybridRanker(embedding_service=embedding_service, vector_index=vector_index)


@pytest.fixture
def summary_compiler(
    content_store: FileContentStore,
    summary_store: SqliteSummaryStore,
    summarizer: ExtractiveSummarizer,
    embedding_service: EmbeddingService,
) -> SummaryCompiler:
    """Summary compiler with the default contiguous clustering."""
    return SummaryCompiler(
        content_store=content_store,
        summary_store=summary_store,
        summarizer=summarizer,
        embedding_service=embedding_service,
    )


@pytest.fixture
def context_assembler(
    ranker: HybridRanker,
    summary_store: SqliteSummaryStore,
    summarizer: ExtractiveSummarizer,
    compressor: ExtractiveCompressor,
) -> ContextAssembler:
    """Context assembler."""
    return ContextAssembler(
        ranker=ranker,
        summary_store=summary_store,
        summarizer=summarizer,
        compressor=compressor,
    )


# Helper functions for tests


def make_item(
    name: str,
    text: str = "Some note text",
    project_name: str = "demo",
    updated_at: datetime | None = None,
    **kwargs,
) -> Item:
    """Create a test item."""
    timestamp = updated_at or datetime.now(timezone.utc)
    return Item(
        project_name=project_name,
        name=name,
        text=text,
        created_at=timestamp,
        updated_at=timestamp,
        **kwargs,
    )
