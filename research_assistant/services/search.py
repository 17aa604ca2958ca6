# services/search.py
"""
Search service
---------------
Query matching primitives shared by ranking and highlighting.

The query is matched as one literal term (no tokenization): it is
trimmed, regex-escaped and compiled case-insensitively. Ranking and
highlighting both go through compile_term so a span that gets
highlighted is always a span that got scored, and the other way round.
No scoring and no Flask code here.
"""

import logging
import re

LOGGER = logging.getLogger(__name__)


class InvalidQueryPattern(ValueError):
    """The query could not be turned into a match pattern."""


def normalize_query(query):
    """Trim the query. Anything that is not a string counts as empty."""
    if not query or not isinstance(query, str):
        return ""
    return query.strip()


def escape_query(query: str):
    """Escape characters that are meaningful in a regular expression."""
    if not isinstance(query, str):
        raise InvalidQueryPattern(f"query must be a string, got {type(query).__name__}")
    return re.escape(query)


def compile_term(query, whole_word=False):
    """
    Compile the query into a case-insensitive pattern.

    Args:
        query: raw query text (trimmed here)
        whole_word: the term must not touch another word character
                    on either side

    Returns:
        compiled pattern, or None when the query is empty or the
        pattern cannot be built
    """
    term = normalize_query(query)
    if not term:
        return None

    try:
        escaped = escape_query(term)
        if whole_word:
            escaped = r"(?<!\w)" + escaped + r"(?!\w)"
        return re.compile(escaped, re.IGNORECASE)
    except (InvalidQueryPattern, re.error) as exc:
        LOGGER.debug("Skipping unusable query pattern %r: %s", query, exc)
        return None


def count_matches(text, query):
    """Count non-overlapping case-insensitive occurrences of query in text."""
    if not text or not isinstance(text, str):
        return 0

    pattern = compile_term(query)
    if pattern is None:
        return 0

    return sum(1 for _ in pattern.finditer(text))


def has_match(text, query, whole_word=False):
    """True if query occurs in text (optionally as a whole word)."""
    if not text or not isinstance(text, str):
        return False

    pattern = compile_term(query, whole_word=whole_word)
    return pattern is not None and pattern.search(text) is not None
