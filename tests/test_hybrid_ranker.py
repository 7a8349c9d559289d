"""Tests for hybrid ranking."""

import math
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from conftest import make_item
from memory_bank.embeddings.base import EmbeddingProvider
from memory_bank.exceptions import CollaboratorUnavailableError, ValidationError
from memory_bank.models.item import RankingWeights, SearchFilters
from memory_bank.services.embedding_service import EmbeddingService
from memory_bank.services.hybrid_ranker import (
    HybridRanker,
    frequency_score,
    recency_score,
    time_decay,
)
from memory_bank.services.memory_service import MemoryService
from memory_bank.stores.base import VectorIndex

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _ranker(hits, embedding_service: EmbeddingService) -> tuple[HybridRanker, AsyncMock]:
    index = AsyncMock(spec=VectorIndex)
    index.nearest.return_value = hits
    return HybridRanker(embedding_service, index), index


class TestScoreFunctions:
    """Test component score formulas."""

    def test_recency_of_fresh_item_is_one(self):
        assert recency_score(0) == pytest.approx(1.0)

    def test_recency_decreases_with_age(self):
        assert recency_score(30) == pytest.approx(1 / math.log(30 + math.e))
        assert recency_score(30) < recency_score(1)

    def test_frequency(self):
        assert frequency_score(0) == 0.0
        assert frequency_score(9) == pytest.approx(math.log(10) / 10)

    def test_time_decay(self):
        assert time_decay(0, 30) == 1.0
        assert time_decay(30, 30) == pytest.approx(math.exp(-1))


class TestHybridRanker:
    """Test HybridRanker with a mocked vector index."""

    @pytest.mark.asyncio
    async def test_similarity_order_with_equal_other_factors(
        self, embedding_service: EmbeddingService
    ):
        """Equal salience and age keep the similarity order."""
        hits = [
            (make_item("low", updated_at=NOW), 0.3),
            (make_item("high", updated_at=NOW), 0.9),
            (make_item("mid", updated_at=NOW), 0.6),
        ]
        ranker, _ = _ranker(hits, embedding_service)

        results = await ranker.rank("query", now=NOW)

        assert [r.item.name for r in results] == ["high", "mid", "low"]
        # 0.4 * 0.9 + 0.2 * 1.0 + 0.2 * 0 + 0.2 * 0.5 * 1.0
        assert results[0].scores.combined == pytest.approx(0.66)
        assert results[0].scores.semantic == 0.9
        assert results[0].scores.time_decay == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_combined_score_formula(self, embedding_service: EmbeddingService):
        item = make_item(
            "a", updated_at=NOW - timedelta(days=10), frequency=4, salience=0.8
        )
        ranker, _ = _ranker([(item, 0.5)], embedding_service)
        weights = RankingWeights(
            semantic=0.1, recency=0.2, frequency=0.3, salience=0.4, time_decay_days=20
        )

        [result] = await ranker.rank("query", weights=weights, now=NOW)

        expected = (
            0.1 * 0.5
            + 0.2 * (1 / math.log(10 + math.e))
            + 0.3 * (math.log(5) / 10)
            + 0.4 * 0.8 * math.exp(-10 / 20)
        )
        assert result.scores.combined == pytest.approx(expected)

    @pytest.mark.asyncio
    async def test_ties_prefer_later_update(self, embedding_service: EmbeddingService):
        weights = RankingWeights(semantic=1.0, recency=0.0, frequency=0.0, salience=0.0)
        hits = [
            (make_item("older", updated_at=NOW - timedelta(days=2)), 0.5),
            (make_item("newer", updated_at=NOW - timedelta(days=1)), 0.5),
        ]
        ranker, _ = _ranker(hits, embedding_service)

        results = await ranker.rank("query", weights=weights, now=NOW)

        assert results[0].scores.combined == results[1].scores.combined
        assert [r.item.name for r in results] == ["newer", "older"]

    @pytest.mark.asyncio
    async def test_results_sorted_non_increasing(self, embedding_service: EmbeddingService):
        hits = [
            (make_item(f"n{i}", updated_at=NOW - timedelta(days=i * 7), frequency=i), 1 - i / 10)
            for i in range(6)
        ]
        ranker, _ = _ranker(hits, embedding_service)

        results = await ranker.rank("query", now=NOW)
        combined = [r.scores.combined for r in results]

        assert combined == sorted(combined, reverse=True)

    @pytest.mark.asyncio
    async def test_future_timestamps_count_as_fresh(self, embedding_service: EmbeddingService):
        ranker, _ = _ranker(
            [(make_item("a", updated_at=NOW + timedelta(days=3)), 0.5)], embedding_service
        )

        [result] = await ranker.rank("query", now=NOW)

        assert result.scores.recency == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_empty_index_returns_empty_list(self, embedding_service: EmbeddingService):
        ranker, _ = _ranker([], embedding_service)

        assert await ranker.rank("anything") == []

    @pytest.mark.asyncio
    async def test_passes_filters_and_limit(self, embedding_service: EmbeddingService):
        ranker, index = _ranker([], embedding_service)
        filters = SearchFilters(project_name="demo", tags=["x"])

        await ranker.rank("query", filters=filters, limit=7)

        vector, passed_filters, limit = index.nearest.await_args.args
        assert len(vector) == 384
        assert passed_filters == filters
        assert limit == 7

    @pytest.mark.asyncio
    async def test_snippet_around_match(self, embedding_service: EmbeddingService):
        text = "x" * 300 + " needle " + "y" * 300
        ranker, _ = _ranker([(make_item("a", text, updated_at=NOW), 0.5)], embedding_service)

        [result] = await ranker.rank("NEEDLE", now=NOW)

        assert "needle" in result.snippet
        assert result.snippet.startswith("...")
        assert result.snippet.endswith("...")
        assert len(result.snippet) <= 2 * 100 + len("needle") + 6

    @pytest.mark.asyncio
    async def test_snippet_without_match(self, embedding_service: EmbeddingService):
        text = "z" * 500
        ranker, _ = _ranker([(make_item("a", text, updated_at=NOW), 0.5)], embedding_service)

        [result] = await ranker.rank("absent", now=NOW)

        assert result.snippet == "z" * 200 + "..."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_empty_query_rejected_before_io(
        self, embedding_service: EmbeddingService, query: str
    ):
        ranker, index = _ranker([], embedding_service)

        with pytest.raises(ValidationError):
            await ranker.rank(query)
        index.nearest.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_positive_limit_rejected(self, embedding_service: EmbeddingService):
        ranker, index = _ranker([], embedding_service)

        with pytest.raises(ValidationError):
            await ranker.rank("query", limit=0)
        index.nearest.assert_not_called()

    @pytest.mark.asyncio
    async def test_embedder_failure_is_fatal(self):
        provider = AsyncMock(spec=EmbeddingProvider)
        provider.embed.side_effect = TimeoutError("embedder timed out")
        ranker, index = _ranker([], EmbeddingService(provider))

        with pytest.raises(CollaboratorUnavailableError):
            await ranker.rank("query")
        index.nearest.assert_not_called()

    @pytest.mark.asyncio
    async def test_index_failure_is_fatal(self, embedding_service: EmbeddingService):
        index = AsyncMock(spec=VectorIndex)
        index.nearest.side_effect = ConnectionError("index offline")
        ranker = HybridRanker(embedding_service, index)

        with pytest.raises(CollaboratorUnavailableError) as exc_info:
            await ranker.rank("query")

        assert exc_info.value.collaborator == "VectorIndex"


class TestHybridRankerIntegration:
    """Test HybridRanker over the SQLite index."""

    @pytest.mark.asyncio
    async def test_rank_written_items(self, ranker: HybridRanker, memory_service: MemoryService):
        await memory_service.write("demo", "db", "sqlite database schema migration notes")
        await memory_service.write("demo", "ui", "button colors for the settings screen")
        await memory_service.write("other", "db", "sqlite database schema migration notes")

        results = await ranker.rank(
            "database schema migration", filters=SearchFilters(project_name="demo")
        )

        assert [r.item.name for r in results][0] == "db"
        assert all(r.item.project_name == "demo" for r in results)
        assert results[0].scores.semantic > results[-1].scores.semantic
