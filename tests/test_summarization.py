"""Tests for extractive helpers, summarizers and compressors."""

import pytest

from memory_bank.compressors.base import resolve_target
from memory_bank.compressors.extractive import ExtractiveCompressor, TruncationCompressor
from memory_bank.models.summary import SummaryLevel
from memory_bank.summarizers.extractive import ExtractiveSummarizer
from memory_bank.utils.summarization import (
    calculate_word_frequency,
    extractive_summary_by_tokens,
    score_sentence,
    split_sentences,
    truncate_to_tokens,
)
from memory_bank.utils.token_counter import estimate_tokens

LONG_TEXT = (
    "The ranking pipeline combines semantic similarity with recency. "
    "Recency decays slowly as items age. "
    "Salience is a caller assigned importance score. "
    "Frequency counts how often an item was read. "
    "The weather was pleasant on the day the notes were written. "
    "Semantic similarity comes from cosine distance between embeddings."
)


class TestHelpers:
    """Test sentence splitting and scoring."""

    def test_split_sentences(self):
        sentences = split_sentences("First one. Second one!\nThird line")

        assert sentences == ["First one.", "Second one!", "Third line"]

    def test_word_frequency_ignores_stop_words(self):
        freq = calculate_word_frequency("the cat and the cat and a dog")

        assert "the" not in freq
        assert freq["cat"] == 1.0
        assert freq["dog"] == 0.5

    def test_boost_terms_raise_score(self):
        freq = calculate_word_frequency(LONG_TEXT)
        plain = score_sentence("The weather was pleasant.", freq)
        boosted = score_sentence("The weather was pleasant.", freq, boost_terms=["weather"])

        assert boosted == pytest.approx(plain + 1.0)


class TestTruncateToTokens:
    """Test token-bounded truncation."""

    def test_text_within_budget_is_unchanged(self):
        assert truncate_to_tokens("short", 10, estimate_tokens) == "short"

    def test_result_fits_target(self):
        result = truncate_to_tokens(LONG_TEXT, 10, estimate_tokens)

        assert estimate_tokens(result) <= 10
        assert LONG_TEXT.startswith(result)

    def test_zero_target(self):
        assert truncate_to_tokens(LONG_TEXT, 0, estimate_tokens) == ""


class TestExtractiveSummaryByTokens:
    """Test extractive summaries."""

    def test_within_budget_returns_text(self):
        summary, original, tokens = extractive_summary_by_tokens("Short text.", 100, estimate_tokens)

        assert summary == "Short text."
        assert original == tokens

    def test_summary_fits_target(self):
        summary, original, tokens = extractive_summary_by_tokens(LONG_TEXT, 30, estimate_tokens)

        assert tokens <= 30
        assert tokens == estimate_tokens(summary)
        assert original == estimate_tokens(LONG_TEXT)

    def test_boost_terms_keep_sentence(self):
        summary, _, _ = extractive_summary_by_tokens(
            LONG_TEXT, 20, estimate_tokens, boost_terms=["weather"]
        )

        assert "weather" in summary

    def test_empty_text(self):
        assert extractive_summary_by_tokens("", 10, estimate_tokens) == ("", 0, 0)


class TestExtractiveSummarizer:
    """Test ExtractiveSummarizer."""

    @pytest.mark.asyncio
    async def test_node_summary_has_no_heading(self):
        summarizer = ExtractiveSummarizer(counting_method="estimate")

        summary = await summarizer.summarize(LONG_TEXT, level=SummaryLevel.NODE, target_tokens=30)

        assert not summary.startswith("#")
        assert summarizer.count_tokens(summary) <= 30

    @pytest.mark.asyncio
    async def test_project_summary_has_heading_within_budget(self):
        summarizer = ExtractiveSummarizer(counting_method="estimate")

        summary = await summarizer.summarize(
            LONG_TEXT, level=SummaryLevel.PROJECT, target_tokens=40
        )

        assert summary.startswith("# Project Overview")
        assert summarizer.count_tokens(summary) <= 40

    @pytest.mark.asyncio
    async def test_bullet_points_style(self):
        summarizer = ExtractiveSummarizer(counting_method="estimate")

        summary = await summarizer.summarize(
            LONG_TEXT, level=SummaryLevel.NODE, target_tokens=200, style="bullet-points"
        )

        assert all(line.startswith("- ") for line in summary.splitlines())

    @pytest.mark.asyncio
    async def test_empty_text(self):
        summarizer = ExtractiveSummarizer(counting_method="estimate")

        assert await summarizer.summarize("  ", level=SummaryLevel.NODE, target_tokens=10) == ""


class TestCompressors:
    """Test compressors."""

    def test_resolve_target(self):
        assert resolve_target(100, 40, None) == 40
        assert resolve_target(100, None, 0.25) == 25

    def test_resolve_target_requires_target_or_ratio(self):
        with pytest.raises(ValueError):
            resolve_target(100, None, None)

    def test_resolve_target_rejects_bad_ratio(self):
        with pytest.raises(ValueError):
            resolve_target(100, None, 1.5)

    @pytest.mark.asyncio
    async def test_extractive_compressor(self):
        compressor = ExtractiveCompressor(counting_method="estimate")

        result = await compressor.compress(LONG_TEXT, target_tokens=25, preserve_terms=["salience"])

        assert result.method == "extraction"
        assert result.token_count <= 25
        assert result.original_tokens == estimate_tokens(LONG_TEXT)
        assert result.achieved_ratio == pytest.approx(result.token_count / result.original_tokens)
        assert "Salience" in result.text

    @pytest.mark.asyncio
    async def test_extractive_compressor_truncation_method(self):
        compressor = ExtractiveCompressor(counting_method="estimate")

        result = await compressor.compress(LONG_TEXT, target_tokens=12, method="truncation")

        assert result.method == "truncation"
        assert LONG_TEXT.startswith(result.text)
        assert result.token_count <= 12

    @pytest.mark.asyncio
    async def test_truncation_compressor_with_ratio(self):
        compressor = TruncationCompressor(counting_method="estimate")

        result = await compressor.compress(LONG_TEXT, ratio=0.5)

        assert result.method == "truncation"
        assert result.token_count <= result.original_tokens // 2
        assert LONG_TEXT.startswith(result.text)
