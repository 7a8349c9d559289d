"""Token-budgeted context assembly with a compression fallback."""

import functools
import hashlib
import logging
import math
import time

from memory_bank.compressors.base import Compressor
from memory_bank.exceptions import (
    CollaboratorUnavailableError,
    NotFoundError,
    ValidationError,
)
from memory_bank.models.context import (
    CompiledContext,
    ContextBudget,
    ContextItem,
    ContextItemMetadata,
    ContextItemType,
    ContextOptions,
    ContextType,
)
from memory_bank.models.item import RankingWeights, SearchFilters
from memory_bank.models.summary import SummaryLevel
from memory_bank.services.hybrid_ranker import HybridRanker
from memory_bank.stores.base import SummaryStore
from memory_bank.summarizers.base import Summarizer
from memory_bank.utils.summarization import truncate_to_tokens
from memory_bank.utils.validators import validate_query

logger = logging.getLogger(__name__)

FILE_CANDIDATE_LIMIT = 20
SUMMARY_CANDIDATE_LIMIT = 10
SUMMARY_IMPORTANCE = 0.7
# A partially fitting item is only accepted if it keeps at least this share
MIN_PARTIAL_RATIO = 0.2
RECENCY_TIE_SECONDS = 86400

FILE_RANKING_WEIGHTS = RankingWeights(semantic=0.8, recency=0.2, frequency=0.0, salience=0.0)
# Importance given to items whose salience is unset (0)
NEUTRAL_IMPORTANCE = 0.5

# context type -> (max tokens, reserved tokens before the query)
BUDGET_PRESETS: dict[str, tuple[int, int]] = {
    "search": (4000, 500),
    "summarization": (8000, 1000),
    "qa": (6000, 800),
}
RECOMMENDED_COMPRESSION_TARGET = 0.3


def _compilation_id(query: str) -> str:
    query_hash = hashlib.sha1(query.encode("utf-8")).hexdigest()[:8]
    return f"compilation-{query_hash}-{int(time.time() * 1000)}"


class ContextAssembler:
    """Assembles ranked items and summaries into a token budget."""

    def __init__(
        self,
        ranker: HybridRanker,
        summary_store: SummaryStore,
        summarizer: Summarizer,
        compressor: Compressor,
    ) -> None:
        """Initialize context assembler.

        Args:
            ranker: Hybrid ranker for FILE candidates
            summary_store: Summary store for SUMMARY candidates
            summarizer: Token counting facility
            compressor: Compressor applied when the selection overflows
        """
        self.ranker = ranker
        self.summary_store = summary_store
        self.summarizer = summarizer
        self.compressor = compressor

    async def compile(
        self,
        query: str,
        budget: ContextBudget,
        options: ContextOptions | None = None,
    ) -> CompiledContext:
        """Compile a context for a query within a token budget.

        Args:
            query: Query the context is assembled for
            budget: Token budget
            options: Candidate sources, ordering and compression options

        Returns:
            Compiled context whose total tokens never exceed the available budget

        Raises:
            ValidationError: If the query is empty or the budget is inconsistent
            CollaboratorUnavailableError: If ranking or the summary store fails
        """
        validate_query(query)
        self._validate_budget(budget)
        options = options or ContextOptions()
        start = time.perf_counter()

        candidates = await self._gather_candidates(query, options)

        relevant = [
            c for c in candidates if c.relevance_score >= options.max_relevance_threshold
        ]
        relevant.sort(
            key=functools.cmp_to_key(
                functools.partial(self._compare, prioritize_recent=options.prioritize_recent)
            )
        )

        selected = self._select_within_budget(
            relevant, budget.available_tokens, options.compression_method
        )

        compression_applied = False
        compression_ratio: float | None = None
        selected_total = sum(item.token_count for item in selected)

        if selected_total > budget.available_tokens:
            await self._compress(selected, budget.available_tokens, query, options)
            compression_applied = True
            compression_ratio = sum(i.token_count for i in selected) / selected_total

        total_tokens = sum(item.token_count for item in selected)
        degraded = any(item.metadata.degraded for item in selected)
        duration_ms = (time.perf_counter() - start) * 1000

        logger.debug(
            "Compiled context: %d/%d candidates, %d tokens, compression=%s",
            len(selected),
            len(candidates),
            total_tokens,
            compression_applied,
        )

        return CompiledContext(
            id=_compilation_id(query),
            query=query,
            budget=budget.model_copy(update={"used_tokens": total_tokens}),
            items=selected,
            total_tokens=total_tokens,
            compression_applied=compression_applied,
            compression_ratio=compression_ratio,
            compile_duration_ms=duration_ms,
            degraded=degraded,
        )

    def recommend_budget(self, query: str, context_type: ContextType = "search") -> ContextBudget:
        """Recommend a budget sized for a use case.

        Raises:
            ValidationError: If the context type is unknown
        """
        if context_type not in BUDGET_PRESETS:
            raise ValidationError(
                f"Unknown context type: {context_type}. "
                f"Expected one of: {', '.join(BUDGET_PRESETS)}"
            )

        max_tokens, reserved = BUDGET_PRESETS[context_type]
        reserved_tokens = reserved + self.summarizer.count_tokens(query)

        return ContextBudget(
            max_tokens=max_tokens,
            reserved_tokens=reserved_tokens,
            available_tokens=max_tokens - reserved_tokens,
            used_tokens=0,
            compression_target=RECOMMENDED_COMPRESSION_TARGET,
        )

    def _validate_budget(self, budget: ContextBudget) -> None:
        if budget.available_tokens < 0:
            raise ValidationError(
                f"Budget has negative available tokens ({budget.available_tokens})"
            )
        if budget.available_tokens > budget.max_tokens - budget.reserved_tokens:
            raise ValidationError(
                "available_tokens cannot exceed max_tokens - reserved_tokens"
            )

    async def _gather_candidates(self, query: str, options: ContextOptions) -> list[ContextItem]:
        candidates: list[ContextItem] = []

        if options.include_files:
            results = await self.ranker.rank(
                query,
                filters=SearchFilters(project_name=options.project_name),
                weights=FILE_RANKING_WEIGHTS,
                limit=FILE_CANDIDATE_LIMIT,
            )
            for result in results:
                item = result.item
                candidates.append(
                    ContextItem(
                        id=item.id,
                        content=item.text,
                        token_count=self.summarizer.count_tokens(item.text),
                        relevance_score=result.scores.semantic,
                        type=ContextItemType.FILE,
                        metadata=ContextItemMetadata(
                            project_name=item.project_name,
                            importance=item.salience or NEUTRAL_IMPORTANCE,
                            file_name=item.name,
                            last_accessed=item.last_accessed_at,
                        ),
                    )
                )

        if options.include_summaries and options.project_name:
            try:
                matches = await self.summary_store.search(
                    options.project_name,
                    query,
                    limit=SUMMARY_CANDIDATE_LIMIT,
                    levels=[SummaryLevel.SECTION, SummaryLevel.PROJECT],
                )
            except (NotFoundError, ValidationError):
                raise
            except Exception as e:
                raise CollaboratorUnavailableError("SummaryStore", str(e)) from e

            for summary, relevance in matches:
                candidates.append(
                    ContextItem(
                        id=summary.id,
                        content=summary.text,
                        token_count=summary.token_count,
                        relevance_score=relevance,
                        type=ContextItemType.SUMMARY,
                        metadata=ContextItemMetadata(
                            project_name=summary.project_name,
                            importance=SUMMARY_IMPORTANCE,
                            summary_level=summary.level.value,
                        ),
                    )
                )

        return candidates

    @staticmethod
    def _compare(a: ContextItem, b: ContextItem, *, prioritize_recent: bool) -> int:
        """Order by recency when far apart, else by relevance x importance, descending."""
        if prioritize_recent and a.metadata.last_accessed and b.metadata.last_accessed:
            diff = (b.metadata.last_accessed - a.metadata.last_accessed).total_seconds()
            if abs(diff) > RECENCY_TIE_SECONDS:
                return 1 if diff > 0 else -1

        score_a = a.relevance_score * a.metadata.importance
        score_b = b.relevance_score * b.metadata.importance
        return (score_b > score_a) - (score_b < score_a)

    @staticmethod
    def _select_within_budget(
        candidates: list[ContextItem], available_tokens: int, compression_method: str
    ) -> list[ContextItem]:
        selected = []
        remaining = available_tokens

        for candidate in candidates:
            if candidate.token_count <= remaining:
                selected.append(candidate)
                remaining -= candidate.token_count
            elif (
                compression_method != "truncation"
                and remaining / candidate.token_count >= MIN_PARTIAL_RATIO
            ):
                selected.append(candidate)
                break

            if remaining <= 0:
                break

        return selected

    async def _compress(
        self,
        items: list[ContextItem],
        available_tokens: int,
        query: str,
        options: ContextOptions,
    ) -> None:
        """Compress items in place by a uniform ratio so they fit the budget."""
        total = sum(item.token_count for item in items)
        ratio = available_tokens / total
        preserve_terms = query.split()

        for item in items:
            target = math.floor(item.token_count * ratio)
            try:
                result = await self.compressor.compress(
                    item.content,
                    target_tokens=target,
                    preserve_terms=preserve_terms,
                    method=options.compression_method,
                )
                content = result.text
            except Exception as e:
                logger.warning("Compression failed for %s, truncating instead: %s", item.id, e)
                content = truncate_to_tokens(item.content, target, self.summarizer.count_tokens)
                item.metadata.degraded = True

            token_count = self.summarizer.count_tokens(content)
            if token_count > target:
                content = truncate_to_tokens(content, target, self.summarizer.count_tokens)
                token_count = self.summarizer.count_tokens(content)

            item.content = content
            item.token_count = token_count
            item.metadata.compressed = True
