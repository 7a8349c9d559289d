"""Abstract base class for summarizers."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Literal

from memory_bank.models.summary import SummaryLevel

SummaryStyle = Literal["bullet-points", "paragraph", "structured"]


class Summarizer(ABC):
    """Level-aware text summarizer that also owns token counting."""

    @abstractmethod
    async def summarize(
        self,
        text: str,
        *,
        level: SummaryLevel,
        target_tokens: int,
        style: SummaryStyle = "structured",
        focus_areas: Sequence[str] = (),
    ) -> str:
        """Summarize text to roughly `target_tokens` tokens.

        Args:
            text: Input text
            level: Hierarchy level the summary is produced for
            target_tokens: Token budget of the summary
            style: Output style
            focus_areas: Keywords to emphasize

        Returns:
            Summary text
        """
        pass

    @abstractmethod
    def count_tokens(self, text: str) -> int:
        """Count tokens of a text.

        Args:
            text: Input text

        Returns:
            Token count
        """
        pass
