"""Extractive summaries and token-bounded truncation.

Sentences are scored by the mean normalized frequency of their words, plus
one point per boost term they contain. The best sentences that fit the
token target are kept and joined in their original order.
"""

import re
from collections import Counter
from collections.abc import Callable, Iterable

TokenCounter = Callable[[str], int]

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "must", "shall", "and", "or", "of", "to",
        "in", "on", "for", "with", "it", "this", "that",
    }
)

_WORD = re.compile(r"\w+")
# Whitespace after Latin or CJK terminal punctuation, or any run of newlines
_SENTENCE_BREAK = re.compile(r"(?<=[。！？.!?])\s+|\n+")


def _words(text: str) -> list[str]:
    return _WORD.findall(text.lower())


def split_sentences(text: str) -> list[str]:
    return [part.strip() for part in _SENTENCE_BREAK.split(text) if part and part.strip()]


def calculate_word_frequency(text: str) -> dict[str, float]:
    """Word counts scaled so the most frequent content word scores 1.0.

    Stop words and single characters are not counted.
    """
    counts = Counter(w for w in _words(text) if len(w) > 1 and w not in STOP_WORDS)
    if not counts:
        return {}
    top = max(counts.values())
    return {w: n / top for w, n in counts.items()}


def score_sentence(
    sentence: str,
    word_freq: dict[str, float],
    boost_terms: Iterable[str] = (),
) -> float:
    words = _words(sentence)
    if not words:
        return 0.0
    lowered = sentence.lower()
    base = sum(word_freq.get(w, 0.0) for w in words) / len(words)
    return base + sum(1.0 for t in boost_terms if t and t.lower() in lowered)


def truncate_to_tokens(text: str, target_tokens: int, count: TokenCounter) -> str:
    """Longest prefix of `text` that counts at most `target_tokens`.

    Binary search over the prefix length, so `count` is called
    O(log len(text)) times.
    """
    if target_tokens <= 0 or not text:
        return ""
    if count(text) <= target_tokens:
        return text

    fits, too_long = 0, len(text)
    while too_long - fits > 1:
        mid = (fits + too_long) // 2
        if count(text[:mid]) <= target_tokens:
            fits = mid
        else:
            too_long = mid
    return text[:fits].rstrip()


def _pick_sentences(
    sentences: list[str], order: list[int], target_tokens: int, count: TokenCounter
) -> list[int]:
    chosen: list[int] = []
    used = 0
    for i in order:
        cost = count(sentences[i])
        if used + cost <= target_tokens:
            chosen.append(i)
            used += cost
    return sorted(chosen)


def extractive_summary_by_tokens(
    text: str,
    target_tokens: int,
    count: TokenCounter,
    boost_terms: Iterable[str] = (),
) -> tuple[str, int, int]:
    """Summarize `text` into at most `target_tokens` tokens.

    Text already within the target comes back unchanged. Single-sentence
    text, or text whose best sentence alone is over the target, is
    truncated instead.

    Args:
        text: Text to summarize
        target_tokens: Token ceiling for the result
        count: Token counter used for every measurement
        boost_terms: Terms that favour the sentences containing them

    Returns:
        (summary, tokens in `text`, tokens in summary)
    """
    if not text:
        return "", 0, 0

    original_tokens = count(text)
    if original_tokens <= target_tokens:
        return text, original_tokens, original_tokens

    def clipped(source: str) -> tuple[str, int, int]:
        cut = truncate_to_tokens(source, target_tokens, count)
        return cut, original_tokens, count(cut)

    sentences = split_sentences(text)
    if len(sentences) < 2:
        return clipped(text)

    freq = calculate_word_frequency(text)
    boost = list(boost_terms)
    scores = [score_sentence(s, freq, boost) for s in sentences]
    order = sorted(range(len(sentences)), key=scores.__getitem__, reverse=True)

    chosen = _pick_sentences(sentences, order, target_tokens, count)
    if not chosen:
        return clipped(sentences[order[0]])

    summary = " ".join(sentences[i] for i in chosen)
    # joining can add a token at sentence seams
    if count(summary) > target_tokens:
        return clipped(summary)
    return summary, original_tokens, count(summary)
