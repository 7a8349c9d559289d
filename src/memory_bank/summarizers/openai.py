"""OpenAI chat-completion summarizer."""

from collections.abc import Sequence
from typing import Any

from memory_bank.models.summary import SummaryLevel
from memory_bank.summarizers.base import Summarizer, SummaryStyle
from memory_bank.utils.token_counter import get_token_count

LEVEL_INSTRUCTIONS = {
    SummaryLevel.NODE: "Summarize this single note. Keep names, decisions and open tasks.",
    SummaryLevel.SECTION: (
        "Summarize this group of related notes into one section overview. "
        "Merge duplicates and keep cross-note relationships."
    ),
    SummaryLevel.PROJECT: (
        "Write a project overview from these section summaries. "
        "Lead with goals and current state, then key components."
    ),
}

STYLE_INSTRUCTIONS = {
    "bullet-points": "Answer as a bullet list.",
    "paragraph": "Answer in plain paragraphs.",
    "structured": "Answer in short Markdown with headings where useful.",
}


class OpenAISummarizer(Summarizer):
    """Summarizer backed by an OpenAI chat model."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini") -> None:
        """Initialize OpenAI summarizer.

        Args:
            api_key: OpenAI API key
            model: Chat model name
        """
        self.api_key = api_key
        self.model = model
        self._client: Any | None = None

    def _get_client(self) -> Any:
        """Get OpenAI client lazily."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError as e:
                raise ImportError(
                    'openai is not installed. Install with: pip install "memory-bank[openai]"'
                ) from e

            self._client = AsyncOpenAI(api_key=self.api_key)

        return self._client

    def count_tokens(self, text: str) -> int:
        """Count tokens with the chat model's encoding."""
        return get_token_count(text, self.model)

    async def summarize(
        self,
        text: str,
        *,
        level: SummaryLevel,
        target_tokens: int,
        style: SummaryStyle = "structured",
        focus_areas: Sequence[str] = (),
    ) -> str:
        """Summarize text with the chat model."""
        if not text.strip():
            return ""

        instructions = [
            LEVEL_INSTRUCTIONS[level],
            STYLE_INSTRUCTIONS[style],
            f"Stay under {target_tokens} tokens.",
        ]
        if focus_areas:
            instructions.append(f"Emphasize: {', '.join(focus_areas)}.")

        client = self._get_client()
        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": " ".join(instructions)},
                {"role": "user", "content": text},
            ],
            max_tokens=target_tokens,
            temperature=0.2,
        )
        return (response.choices[0].message.content or "").strip()
