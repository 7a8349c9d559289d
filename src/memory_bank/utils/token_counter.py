"""Token counts for budget arithmetic.

Two counters are available: exact counts from a tiktoken encoding, and a
character-based estimate that needs no tokenizer data. The estimate charges
0.7 tokens per CJK character and one token per four other characters,
rounded up.
"""

from functools import lru_cache
from typing import Literal

import tiktoken

CountingMethod = Literal["tiktoken", "estimate"]

FALLBACK_ENCODING = "cl100k_base"

# Hiragana, katakana, CJK unified ideographs, Hangul syllables
_CJK_RANGES = (
    ("\u3040", "\u309f"),
    ("\u30a0", "\u30ff"),
    ("\u4e00", "\u9fff"),
    ("\uac00", "\ud7af"),
)


@lru_cache(maxsize=8)
def _encoding_for(model: str) -> tiktoken.Encoding:
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding(FALLBACK_ENCODING)


def _is_cjk(char: str) -> bool:
    return any(low <= char <= high for low, high in _CJK_RANGES)


def count_tokens(text: str, model: str = "gpt-4") -> int:
    """Exact token count under `model`'s encoding.

    Unknown model names fall back to cl100k_base.
    """
    return len(_encoding_for(model).encode(text)) if text else 0


def estimate_tokens(text: str) -> int:
    if not text:
        return 0
    cjk = sum(map(_is_cjk, text))
    other = len(text) - cjk
    return int(cjk * 0.7) + (other + 3) // 4


def get_token_count(
    text: str, model: str = "gpt-4", method: CountingMethod = "tiktoken"
) -> int:
    """Count tokens in `text` with the given method.

    Args:
        text: Text to measure
        model: Encoding model, used by "tiktoken" only
        method: "tiktoken" or "estimate"
    """
    if method == "estimate":
        return estimate_tokens(text)
    return count_tokens(text, model)
