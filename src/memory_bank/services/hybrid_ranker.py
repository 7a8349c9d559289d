"""Hybrid ranking of items by semantic, recency, frequency and salience scores."""

import logging
import math
from datetime import datetime, timezone

from memory_bank.exceptions import CollaboratorUnavailableError, ValidationError
from memory_bank.models.item import (
    Item,
    RankingWeights,
    ScoreBreakdown,
    SearchFilters,
    SearchResult,
)
from memory_bank.services.embedding_service import EmbeddingService
from memory_bank.stores.base import VectorIndex
from memory_bank.utils.text import extract_snippet
from memory_bank.utils.validators import validate_query

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0


def recency_score(days: float) -> float:
    """1 / ln(days + e): 1.0 for a fresh item, slowly falling with age."""
    return 1.0 / math.log(days + math.e)


def frequency_score(count: int) -> float:
    """ln(count + 1) / 10."""
    return math.log(count + 1) / 10.0


def time_decay(days: float, time_decay_days: float) -> float:
    """exp(-days / time_decay_days)."""
    return math.exp(-days / time_decay_days)


class HybridRanker:
    """Rank items for a query by a weighted combination of scores."""

    def __init__(self, embedding_service: EmbeddingService, vector_index: VectorIndex) -> None:
        """Initialize hybrid ranker.

        Args:
            embedding_service: Embedding service for the query vector
            vector_index: Vector index providing nearest neighbours
        """
        self.embedding_service = embedding_service
        self.vector_index = vector_index

    async def rank(
        self,
        query: str,
        filters: SearchFilters | None = None,
        weights: RankingWeights | None = None,
        limit: int = 20,
        now: datetime | None = None,
    ) -> list[SearchResult]:
        """Rank the items nearest to a query.

        Args:
            query: Search query
            filters: Project and tag filters
            weights: Score weights (defaults 0.4/0.2/0.2/0.2, 30 decay days)
            limit: Maximum number of results
            now: Reference time for age computation

        Returns:
            Results sorted by combined score, ties by most recent update

        Raises:
            ValidationError: If the query is empty or limit < 1
            CollaboratorUnavailableError: If the embedder or index fails
        """
        validate_query(query)
        if limit < 1:
            raise ValidationError("limit must be at least 1")

        weights = weights or RankingWeights()
        now = now or datetime.now(timezone.utc)

        vector = await self.embedding_service.generate(query, is_query=True)

        try:
            hits = await self.vector_index.nearest(vector, filters, limit)
        except ValidationError:
            raise
        except Exception as e:
            raise CollaboratorUnavailableError("VectorIndex", str(e)) from e

        if not hits:
            return []

        results = [
            SearchResult(
                item=item,
                scores=self._score(item, similarity, weights, now),
                snippet=extract_snippet(item.text, query),
            )
            for item, similarity in hits
        ]

        results.sort(
            key=lambda r: (r.scores.combined, r.item.updated_at.timestamp()), reverse=True
        )
        logger.debug("Ranked %d items for query %r", len(results), query)
        return results

    def _score(
        self, item: Item, similarity: float, weights: RankingWeights, now: datetime
    ) -> ScoreBreakdown:
        updated_at = item.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        days = max(0.0, (now - updated_at).total_seconds() / SECONDS_PER_DAY)

        recency = recency_score(days)
        frequency = frequency_score(item.frequency)
        salience = item.salience
        decay = time_decay(days, weights.time_decay_days)

        combined = (
            weights.semantic * similarity
            + weights.recency * recency
            + weights.frequency * frequency
            + weights.salience * salience * decay
        )

        return ScoreBreakdown(
            semantic=similarity,
            recency=recency,
            frequency=frequency,
            salience=salience,
            time_decay=decay,
            combined=combined,
        )
