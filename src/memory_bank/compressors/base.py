"""Abstract base class for compressors."""

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence

from memory_bank.models.context import CompressionResult


class Compressor(ABC):
    """Lossy reduction of a text block toward a token target."""

    @abstractmethod
    async def compress(
        self,
        text: str,
        *,
        target_tokens: int | None = None,
        ratio: float | None = None,
        preserve_terms: Sequence[str] = (),
        method: str = "balanced",
    ) -> CompressionResult:
        """Compress text to `target_tokens` (or `ratio` of its tokens).

        Args:
            text: Input text
            target_tokens: Token target of the result
            ratio: Target ratio used when no token target is given
            preserve_terms: Terms whose sentences should survive
            method: Compression method hint

        Returns:
            Compressed text with its token count and achieved ratio
        """
        pass


def resolve_target(original_tokens: int, target_tokens: int | None, ratio: float | None) -> int:
    """Turn a token target or ratio into a concrete token target.

    Raises:
        ValueError: If neither is given or the ratio is out of range
    """
    if target_tokens is not None:
        return max(0, target_tokens)
    if ratio is None:
        raise ValueError("Either target_tokens or ratio is required")
    if not 0.0 < ratio <= 1.0:
        raise ValueError("ratio must be in (0, 1]")
    return math.floor(original_tokens * ratio)
