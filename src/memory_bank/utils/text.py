"""Lightweight text relevance helpers."""

SNIPPET_RADIUS = 100
SNIPPET_HEAD = 200


def extract_snippet(content: str, query: str) -> str:
    """Extract the text around the first match of the query.

    Args:
        content: Text to extract from
        query: Query text (matched case-insensitively)

    Returns:
        Snippet with "..." markers where text was cut
    """
    index = content.lower().find(query.lower())

    if index == -1:
        if len(content) <= SNIPPET_HEAD:
            return content
        return content[:SNIPPET_HEAD] + "..."

    start = max(0, index - SNIPPET_RADIUS)
    end = min(len(content), index + len(query) + SNIPPET_RADIUS)

    return (
        ("..." if start > 0 else "")
        + content[start:end]
        + ("..." if end < len(content) else "")
    )


def term_relevance(content: str, query: str) -> float:
    """Fraction of query terms contained in the content.

    A term counts as found when any content word contains it.

    Args:
        content: Text to score
        query: Query text

    Returns:
        Relevance between 0.0 and 1.0
    """
    query_terms = query.lower().split()
    if not query_terms:
        return 0.0

    content_words = content.lower().split()
    matches = [
        term for term in query_terms if any(term in word for word in content_words)
    ]
    return len(matches) / len(query_terms)
