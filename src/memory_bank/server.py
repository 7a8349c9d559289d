"""MCP server implementation for Memory Bank."""

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from memory_bank.compressors.extractive import ExtractiveCompressor
from memory_bank.config.settings import Settings
from memory_bank.db.database import Database
from memory_bank.db.repositories.item_repository import SqliteVectorIndex
from memory_bank.db.repositories.summary_repository import SqliteSummaryStore
from memory_bank.embeddings.base import EmbeddingProvider
from memory_bank.embeddings.hashing import HashEmbeddingProvider
from memory_bank.embeddings.local import LocalEmbeddingProvider
from memory_bank.embeddings.openai import OpenAIEmbeddingProvider
from memory_bank.services.clustering import Clusterer, ContiguousClusterer, EmbeddingClusterer
from memory_bank.services.context_assembler import ContextAssembler
from memory_bank.services.embedding_service import EmbeddingService
from memory_bank.services.hybrid_ranker import HybridRanker
from memory_bank.services.memory_service import MemoryService
from memory_bank.services.summary_compiler import SummaryCompiler
from memory_bank.stores.file_content_store import FileContentStore
from memory_bank.summarizers.base import Summarizer
from memory_bank.summarizers.extractive import ExtractiveSummarizer
from memory_bank.summarizers.openai import OpenAISummarizer
from memory_bank.tools import context_tools, hierarchy_tools, memory_tools

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("memory-bank")

# Global service instances (initialized in main)
memory_service: MemoryService | None = None
ranker: HybridRanker | None = None
summary_compiler: SummaryCompiler | None = None
context_assembler: ContextAssembler | None = None
summary_store: SqliteSummaryStore | None = None
search_default_limit: int = 20
db: Database | None = None


def create_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Build the embedding provider selected in settings."""
    if settings.embedding_provider == "local":
        return LocalEmbeddingProvider(
            settings.embedding_model, expected_dimensions=settings.embedding_dimensions
        )
    if settings.embedding_provider == "openai":
        if not settings.openai_api_key:
            raise ValueError("OpenAI API key required for openai provider")
        return OpenAIEmbeddingProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_embedding_model,
            dimensions=settings.embedding_dimensions,
        )
    return HashEmbeddingProvider(settings.embedding_dimensions)


def create_summarizer(settings: Settings) -> Summarizer:
    """Build the summarizer selected in settings."""
    if settings.summarizer_provider == "openai":
        if not settings.openai_api_key:
            raise ValueError("OpenAI API key required for openai summarizer")
        return OpenAISummarizer(settings.openai_api_key, settings.openai_chat_model)
    return ExtractiveSummarizer(settings.token_counter_model, settings.token_counter)


def create_clusterer(settings: Settings) -> Clusterer:
    """Build the NODE clustering policy selected in settings."""
    if settings.clustering == "embedding":
        return EmbeddingClusterer(settings.max_sections, settings.cluster_similarity_threshold)
    return ContiguousClusterer(settings.max_sections, settings.section_cluster_size)


async def initialize_services(settings: Settings) -> None:
    """Initialize all services and database.

    Args:
        settings: Application settings
    """
    global memory_service, ranker, summary_compiler, context_assembler
    global summary_store, search_default_limit, db

    embedding_service = EmbeddingService(create_embedding_provider(settings))

    # The index is sized by the provider actually in use
    db = Database(settings.database_path, embedding_service.dimensions())
    await db.connect()
    await db.migrate()

    summarizer = create_summarizer(settings)

    content_store = FileContentStore(settings.root_path)
    vector_index = SqliteVectorIndex(db)
    summary_store = SqliteSummaryStore(db)

    memory_service = MemoryService(
        content_store, vector_index, embedding_service, settings.max_content_length
    )
    ranker = HybridRanker(embedding_service, vector_index)
    summary_compiler = SummaryCompiler(
        content_store,
        summary_store,
        summarizer,
        embedding_service,
        clusterer=create_clusterer(settings),
        ttl_seconds=settings.hierarchy_ttl_seconds,
    )
    context_assembler = ContextAssembler(
        ranker,
        summary_store,
        summarizer,
        ExtractiveCompressor(settings.token_counter_model, settings.token_counter),
    )
    search_default_limit = settings.search_default_limit

    logger.info(
        "Services initialized (embeddings=%s, summarizer=%s, root=%s)",
        settings.embedding_provider,
        settings.summarizer_provider,
        settings.root_path,
    )


async def shutdown_services() -> None:
    """Shutdown all services and close database."""
    global db
    if db:
        await db.close()
        db = None


# Memory Tools
@mcp.tool()
async def memory_write(
    project_name: str,
    name: str,
    text: str,
    tags: list[str] | None = None,
    salience: float = 0.5,
) -> dict[str, Any]:
    """Write a new item into a project with automatic embedding generation.

    Args:
        project_name: Project the item belongs to
        name: Item name, unique within the project
        text: Item text
        tags: Tags for filtering
        salience: Importance of the item (0.0-1.0)

    Returns:
        The created item id and timestamp
    """
    if not memory_service:
        raise RuntimeError("Services not initialized")
    return await memory_tools.memory_write(
        memory_service, project_name, name, text, tags, salience
    )


@mcp.tool()
async def memory_update(
    project_name: str,
    name: str,
    text: str | None = None,
    tags: list[str] | None = None,
    salience: float | None = None,
) -> dict[str, Any]:
    """Update an existing item.

    Args:
        project_name: Project of the item
        name: Item name
        text: New text (regenerates the embedding)
        tags: New tags
        salience: New salience (0.0-1.0)

    Returns:
        The updated item id and timestamp
    """
    if not memory_service:
        raise RuntimeError("Services not initialized")
    return await memory_tools.memory_update(
        memory_service, project_name, name, text, tags, salience
    )


@mcp.tool()
async def memory_read(project_name: str, name: str) -> dict[str, Any]:
    """Read an item and record the access.

    Args:
        project_name: Project of the item
        name: Item name

    Returns:
        The item with text, tags and access statistics
    """
    if not memory_service:
        raise RuntimeError("Services not initialized")
    return await memory_tools.memory_read(memory_service, project_name, name)


@mcp.tool()
async def memory_delete(project_name: str, name: str) -> dict[str, Any]:
    """Delete an item.

    Args:
        project_name: Project of the item
        name: Item name

    Returns:
        Deletion status
    """
    if not memory_service:
        raise RuntimeError("Services not initialized")
    return await memory_tools.memory_delete(memory_service, project_name, name)


@mcp.tool()
async def memory_list(project_name: str | None = None) -> dict[str, Any]:
    """List projects, or the items of one project.

    Args:
        project_name: Project to list; lists all projects when omitted

    Returns:
        Project or item names
    """
    if not memory_service:
        raise RuntimeError("Services not initialized")
    return await memory_tools.memory_list(memory_service, project_name)


@mcp.tool()
async def memory_search(
    query: str,
    project_name: str | None = None,
    tags: list[str] | None = None,
    limit: int | None = None,
    semantic_weight: float = 0.4,
    recency_weight: float = 0.2,
    frequency_weight: float = 0.2,
    salience_weight: float = 0.2,
    time_decay_days: float = 30.0,
) -> dict[str, Any]:
    """Search items by combined semantic, recency, frequency and salience score.

    Args:
        query: Search query text
        project_name: Restrict to one project
        tags: Match items carrying any of these tags
        limit: Maximum number of results
        semantic_weight: Weight of semantic similarity
        recency_weight: Weight of recency
        frequency_weight: Weight of access frequency
        salience_weight: Weight of time-decayed salience
        time_decay_days: Salience decay time constant in days

    Returns:
        Ranked items with component scores and snippets
    """
    if not ranker:
        raise RuntimeError("Services not initialized")
    return await memory_tools.memory_search(
        ranker,
        query,
        project_name,
        tags,
        limit or search_default_limit,
        semantic_weight,
        recency_weight,
        frequency_weight,
        salience_weight,
        time_decay_days,
    )


# Context Tools
@mcp.tool()
async def context_compile(
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
    """Compile a token-budgeted context from items and summaries.

    Args:
        query: Query the context is assembled for
        max_tokens: Total token budget
        reserved_tokens: Tokens kept free for the prompt and answer
        project_name: Restrict candidates to one project
        include_files: Include ranked items
        include_summaries: Include section and project summaries
        compression_method: llmlingua/summarization/extraction/truncation
        prioritize_recent: Prefer recently accessed items
        max_relevance_threshold: Minimum candidate relevance (0.0-1.0)

    Returns:
        Selected items, token totals and compression details
    """
    if not context_assembler:
        raise RuntimeError("Services not initialized")
    return await context_tools.context_compile(
        context_assembler,
        query,
        max_tokens,
        reserved_tokens,
        project_name,
        include_files,
        include_summaries,
        compression_method,
        prioritize_recent,
        max_relevance_threshold,
    )


@mcp.tool()
async def context_recommend_budget(query: str, context_type: str = "search") -> dict[str, Any]:
    """Recommend a token budget for a query.

    Args:
        query: Query text
        context_type: search/summarization/qa

    Returns:
        Recommended budget
    """
    if not context_assembler:
        raise RuntimeError("Services not initialized")
    return await context_tools.context_recommend_budget(context_assembler, query, context_type)


# Hierarchy Tools
@mcp.tool()
async def hierarchy_compile(
    project_name: str,
    force_recompile: bool = False,
    max_tokens_per_summary: int = 1000,
    focus_areas: list[str] | None = None,
) -> dict[str, Any]:
    """Compile the project/section/node summary hierarchy of a project.

    Args:
        project_name: Project to compile
        force_recompile: Rebuild even if the stored hierarchy is fresh
        max_tokens_per_summary: Token budget of a node summary
        focus_areas: Keywords the summaries should emphasize

    Returns:
        The summary hierarchy
    """
    if not summary_compiler:
        raise RuntimeError("Services not initialized")
    return await hierarchy_tools.hierarchy_compile(
        summary_compiler, project_name, force_recompile, max_tokens_per_summary, focus_areas
    )


@mcp.tool()
async def hierarchy_refresh(project_name: str, changed_items: list[str]) -> dict[str, Any]:
    """Rebuild a project's hierarchy if it derives from changed items.

    Args:
        project_name: Project to refresh
        changed_items: Names of changed items

    Returns:
        The current summary hierarchy
    """
    if not summary_compiler:
        raise RuntimeError("Services not initialized")
    return await hierarchy_tools.hierarchy_refresh(summary_compiler, project_name, changed_items)


@mcp.tool()
async def hierarchy_optimal_level(project_name: str, max_tokens: int) -> dict[str, Any]:
    """Get the most detailed summary level that fits a token budget.

    Args:
        project_name: Project to read
        max_tokens: Token budget

    Returns:
        The summaries of the chosen level
    """
    if not summary_compiler:
        raise RuntimeError("Services not initialized")
    return await hierarchy_tools.hierarchy_optimal_level(
        summary_compiler, project_name, max_tokens
    )


@mcp.tool()
async def hierarchy_stats(project_name: str) -> dict[str, Any]:
    """Get per-level summary counts and token totals of a project.

    Args:
        project_name: Project to inspect

    Returns:
        Summary statistics
    """
    if not summary_store:
        raise RuntimeError("Services not initialized")
    return await hierarchy_tools.hierarchy_stats(summary_store, project_name)


def create_server() -> FastMCP:
    """Create and return MCP server instance.

    Returns:
        FastMCP server instance
    """
    return mcp
