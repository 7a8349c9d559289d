"""Extractive summarizer built on sentence scoring."""

from collections.abc import Sequence

from memory_bank.models.summary import SummaryLevel
from memory_bank.summarizers.base import Summarizer, SummaryStyle
from memory_bank.utils.summarization import extractive_summary_by_tokens, split_sentences
from memory_bank.utils.token_counter import CountingMethod, get_token_count

LEVEL_HEADINGS = {
    SummaryLevel.PROJECT: "# Project Overview",
    SummaryLevel.SECTION: "## Section Summary",
}


class ExtractiveSummarizer(Summarizer):
    """Summarizer that keeps the highest scoring sentences.

    Sentences are scored by normalized word frequency; sentences that
    mention a focus area get a boost. PROJECT and SECTION summaries carry
    a Markdown heading, and the heading counts toward the budget.
    """

    def __init__(
        self, token_model: str = "gpt-4", counting_method: CountingMethod = "tiktoken"
    ) -> None:
        """Initialize extractive summarizer.

        Args:
            token_model: Model name for token counting
            counting_method: Token counting method
        """
        self.token_model = token_model
        self.counting_method = counting_method

    def count_tokens(self, text: str) -> int:
        """Count tokens of a text."""
        return get_token_count(text, self.token_model, self.counting_method)

    async def summarize(
        self,
        text: str,
        *,
        level: SummaryLevel,
        target_tokens: int,
        style: SummaryStyle = "structured",
        focus_areas: Sequence[str] = (),
    ) -> str:
        """Summarize text by sentence extraction."""
        if not text.strip():
            return ""

        heading = LEVEL_HEADINGS.get(level, "")
        heading_tokens = self.count_tokens(heading + "\n\n") if heading else 0
        budget = max(1, target_tokens - heading_tokens)

        summary, _, _ = extractive_summary_by_tokens(
            text, budget, self.count_tokens, boost_terms=focus_areas
        )

        if style == "bullet-points":
            summary = "\n".join(f"- {sentence}" for sentence in split_sentences(summary))

        if heading and heading_tokens < target_tokens:
            return f"{heading}\n\n{summary}"
        return summary
