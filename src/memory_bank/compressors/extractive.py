"""Extractive and truncation compressors."""

from collections.abc import Sequence

from memory_bank.compressors.base import Compressor, resolve_target
from memory_bank.models.context import CompressionResult
from memory_bank.utils.summarization import extractive_summary_by_tokens, truncate_to_tokens
from memory_bank.utils.token_counter import CountingMethod, get_token_count


class _TokenCountingCompressor(Compressor):
    def __init__(
        self, token_model: str = "gpt-4", counting_method: CountingMethod = "tiktoken"
    ) -> None:
        """Initialize compressor.

        Args:
            token_model: Model name for token counting
            counting_method: Token counting method
        """
        self.token_model = token_model
        self.counting_method = counting_method

    def count_tokens(self, text: str) -> int:
        return get_token_count(text, self.token_model, self.counting_method)

    def _result(self, text: str, original_tokens: int, method: str) -> CompressionResult:
        tokens = self.count_tokens(text)
        return CompressionResult(
            text=text,
            token_count=tokens,
            original_tokens=original_tokens,
            achieved_ratio=tokens / original_tokens if original_tokens else 1.0,
            method=method,
        )


class ExtractiveCompressor(_TokenCountingCompressor):
    """Keeps the most informative sentences, favouring preserved terms.

    The "truncation" method keeps the longest fitting prefix instead.
    """

    async def compress(
        self,
        text: str,
        *,
        target_tokens: int | None = None,
        ratio: float | None = None,
        preserve_terms: Sequence[str] = (),
        method: str = "balanced",
    ) -> CompressionResult:
        original_tokens = self.count_tokens(text)
        target = resolve_target(original_tokens, target_tokens, ratio)

        if method == "truncation":
            truncated = truncate_to_tokens(text, target, self.count_tokens)
            return self._result(truncated, original_tokens, "truncation")

        compressed, _, _ = extractive_summary_by_tokens(
            text, target, self.count_tokens, boost_terms=preserve_terms
        )
        return self._result(compressed, original_tokens, "extraction")


class TruncationCompressor(_TokenCountingCompressor):
    """Keeps the longest prefix that fits the target."""

    async def compress(
        self,
        text: str,
        *,
        target_tokens: int | None = None,
        ratio: float | None = None,
        preserve_terms: Sequence[str] = (),
        method: str = "balanced",
    ) -> CompressionResult:
        original_tokens = self.count_tokens(text)
        target = resolve_target(original_tokens, target_tokens, ratio)

        truncated = truncate_to_tokens(text, target, self.count_tokens)
        return self._result(truncated, original_tokens, "truncation")
