"""Tests for the MCP tool layer."""

from unittest.mock import AsyncMock

import pytest

from memory_bank.db.repositories.summary_repository import SqliteSummaryStore
from memory_bank.exceptions import CollaboratorUnavailableError, NotFoundError, ValidationError
from memory_bank.services.context_assembler import ContextAssembler
from memory_bank.services.hybrid_ranker import HybridRanker
from memory_bank.services.memory_service import MemoryService
from memory_bank.services.summary_compiler import SummaryCompiler
from memory_bank.tools import create_error_response, error_response_for
from memory_bank.tools.context_tools import context_compile, context_recommend_budget
from memory_bank.tools.hierarchy_tools import (
    hierarchy_compile,
    hierarchy_optimal_level,
    hierarchy_refresh,
    hierarchy_stats,
)
from memory_bank.tools.memory_tools import (
    memory_delete,
    memory_list,
    memory_read,
    memory_search,
    memory_update,
    memory_write,
)


class TestErrorResponse:
    """Test create_error_response."""

    def test_shape(self):
        response = create_error_response("bad input", "ValidationError", {"field": "name"})

        assert response["error"] is True
        assert response["message"] == "bad input"
        assert response["error_type"] == "ValidationError"
        assert response["details"] == {"field": "name"}
        assert "timestamp" in response

    def test_details_omitted_when_empty(self):
        assert "details" not in create_error_response("gone", "NotFoundError")

    @pytest.mark.parametrize(
        "error,error_type",
        [
            (NotFoundError("gone"), "NotFoundError"),
            (ValidationError("bad"), "ValidationError"),
            (ValueError("bad"), "ValidationError"),
            (CollaboratorUnavailableError("Embedder", "down"), "CollaboratorUnavailableError"),
            (OSError("disk"), "RuntimeError"),
        ],
    )
    def test_error_response_for(self, error: Exception, error_type: str):
        response = error_response_for(error, "do work")

        assert response["error_type"] == error_type

    def test_unexpected_error_message_names_action(self):
        response = error_response_for(OSError("disk full"), "do work")

        assert response["message"] == "Failed to do work: disk full"


class TestMemoryTools:
    """Test item tools."""

    @pytest.mark.asyncio
    async def test_write_and_read(self, memory_service: MemoryService):
        written = await memory_write(memory_service, "demo", "notes", "Remember the milk", tags=["todo"])
        read = await memory_read(memory_service, "demo", "notes")

        assert written["id"] == "demo:notes"
        assert read["text"] == "Remember the milk"
        assert read["tags"] == ["todo"]
        assert read["frequency"] == 1
        assert "embedding" not in read

    @pytest.mark.asyncio
    async def test_write_duplicate(self, memory_service: MemoryService):
        await memory_write(memory_service, "demo", "notes", "text")

        response = await memory_write(memory_service, "demo", "notes", "text")

        assert response["error"] is True
        assert response["error_type"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_write_embedder_down(self, memory_service: MemoryService):
        memory_service.embedding_service = AsyncMock()
        memory_service.embedding_service.generate.side_effect = CollaboratorUnavailableError(
            "Embedder", "timeout"
        )

        response = await memory_write(memory_service, "demo", "notes", "text")

        assert response["error_type"] == "CollaboratorUnavailableError"
        assert response["details"] == {"collaborator": "Embedder"}

    @pytest.mark.asyncio
    async def test_update(self, memory_service: MemoryService):
        await memory_write(memory_service, "demo", "notes", "text")

        response = await memory_update(memory_service, "demo", "notes", salience=0.9)
        missing = await memory_update(memory_service, "demo", "other", salience=0.9)

        assert response["id"] == "demo:notes"
        assert missing["error_type"] == "NotFoundError"

    @pytest.mark.asyncio
    async def test_read_missing(self, memory_service: MemoryService):
        response = await memory_read(memory_service, "demo", "missing")

        assert response["error_type"] == "NotFoundError"

    @pytest.mark.asyncio
    async def test_delete(self, memory_service: MemoryService):
        await memory_write(memory_service, "demo", "notes", "text")

        assert await memory_delete(memory_service, "demo", "notes") == {
            "deleted": True,
            "id": "demo:notes",
        }
        missing = await memory_delete(memory_service, "demo", "notes")
        assert missing["error_type"] == "NotFoundError"

    @pytest.mark.asyncio
    async def test_list(self, memory_service: MemoryService):
        await memory_write(memory_service, "demo", "b", "text")
        await memory_write(memory_service, "demo", "a", "text")

        projects = await memory_list(memory_service)
        items = await memory_list(memory_service, "demo")
        missing = await memory_list(memory_service, "other")

        assert projects == {"projects": ["demo"], "total": 1}
        assert items == {"project_name": "demo", "items": ["a", "b"], "total": 2}
        assert missing["error_type"] == "NotFoundError"

    @pytest.mark.asyncio
    async def test_search(self, memory_service: MemoryService, ranker: HybridRanker):
        await memory_write(memory_service, "demo", "db", "sqlite schema migration", tags=["db"])
        await memory_write(memory_service, "demo", "ui", "button colors", tags=["ui"])

        response = await memory_search(ranker, "sqlite schema", project_name="demo", tags=["db"])

        assert response["total"] == 1
        [hit] = response["results"]
        assert hit["name"] == "db"
        assert "text" not in hit
        assert hit["snippet"] == "sqlite schema migration"
        assert set(hit["scores"]) == {
            "semantic", "recency", "frequency", "salience", "time_decay", "combined"
        }

    @pytest.mark.asyncio
    async def test_search_validation(self, ranker: HybridRanker):
        empty = await memory_search(ranker, "")
        bad_weight = await memory_search(ranker, "query", semantic_weight=-1.0)
        bad_limit = await memory_search(ranker, "query", limit=0)

        assert empty["error_type"] == "ValidationError"
        assert bad_weight["error_type"] == "ValidationError"
        assert bad_limit["error_type"] == "ValidationError"


class TestContextTools:
    """Test context tools."""

    @pytest.mark.asyncio
    async def test_compile(
        self, context_assembler: ContextAssembler, memory_service: MemoryService
    ):
        await memory_write(memory_service, "demo", "notes", "Budgets cap context tokens.")

        response = await context_compile(
            context_assembler,
            "context budgets",
            max_tokens=200,
            reserved_tokens=50,
            project_name="demo",
            max_relevance_threshold=0.0,
        )

        assert response["budget"]["available_tokens"] == 150
        assert response["total_tokens"] <= 150
        assert response["items"][0]["type"] == "file"
        assert response["items"][0]["metadata"]["file_name"] == "notes"
        assert response["id"].startswith("compilation-")

    @pytest.mark.asyncio
    async def test_compile_invalid_budget(self, context_assembler: ContextAssembler):
        response = await context_compile(
            context_assembler, "query", max_tokens=100, reserved_tokens=200
        )

        assert response["error_type"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_compile_unknown_method(self, context_assembler: ContextAssembler):
        response = await context_compile(
            context_assembler, "query", compression_method="zip"
        )

        assert response["error_type"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_recommend_budget(self, context_assembler: ContextAssembler):
        budget = await context_recommend_budget(context_assembler, "question", "qa")
        unknown = await context_recommend_budget(context_assembler, "question", "poetry")

        assert budget["max_tokens"] == 6000
        assert unknown["error_type"] == "ValidationError"
        assert unknown["details"]["valid_context_types"] == ["search", "summarization", "qa"]


class TestHierarchyTools:
    """Test hierarchy tools."""

    @pytest.mark.asyncio
    async def test_compile_refresh_and_level(
        self,
        summary_compiler: SummaryCompiler,
        summary_store: SqliteSummaryStore,
        memory_service: MemoryService,
    ):
        await memory_write(memory_service, "demo", "a", "First note about storage.")
        await memory_write(memory_service, "demo", "b", "Second note about ranking.")

        compiled = await hierarchy_compile(summary_compiler, "demo")
        refreshed = await hierarchy_refresh(summary_compiler, "demo", ["a"])
        level = await hierarchy_optimal_level(summary_compiler, "demo", 10_000)
        stats = await hierarchy_stats(summary_store, "demo")

        assert compiled["root"]["level"] == "project"
        assert len(compiled["nodes"]) == 2
        assert "embedding" not in compiled["nodes"][0]
        assert compiled["degraded"] is False
        assert refreshed["project_name"] == "demo"
        assert level["level"] == "node"
        assert level["fits_budget"] is True
        assert stats["levels"]["node"]["count"] == 2
        assert stats["total_summaries"] == 2 + len(compiled["sections"]) + 1

    @pytest.mark.asyncio
    async def test_compile_missing_project(self, summary_compiler: SummaryCompiler):
        response = await hierarchy_compile(summary_compiler, "missing")

        assert response["error_type"] == "NotFoundError"

    @pytest.mark.asyncio
    async def test_optimal_level_negative_budget(self, summary_compiler: SummaryCompiler):
        response = await hierarchy_optimal_level(summary_compiler, "demo", -5)

        assert response["error_type"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_stats_invalid_name(self, summary_store: SqliteSummaryStore):
        response = await hierarchy_stats(summary_store, "../etc")

        assert response["error_type"] == "ValidationError"
