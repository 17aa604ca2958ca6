# services/highlight.py
"""
Highlight service
-----------------
Splits display text into plain and matched spans for a query, using
the same escaped pattern the ranking service scores with.
"""

from collections import namedtuple
from html import escape

from .search import compile_term

PLAIN = "plain"
MATCHED = "matched"

Span = namedtuple("Span", ["kind", "text"])


def highlight(text: str, query: str):
    """
    Split text on case-insensitive occurrences of the query.

    Joining the span texts gives back the original text. An empty
    or blank query returns the whole text as one plain span.
    """
    text = text if isinstance(text, str) else ""
    pattern = compile_term(query)
    if pattern is None:
        return [Span(PLAIN, text)]

    spans = []
    pos = 0
    for m in pattern.finditer(text):
        if m.start() > pos:
            spans.append(Span(PLAIN, text[pos:m.start()]))
        spans.append(Span(MATCHED, m.group(0)))
        pos = m.end()

    if pos < len(text) or not spans:
        spans.append(Span(PLAIN, text[pos:]))

    return spans


def highlight_html(text: str, query: str, tag: str = "mark"):
    """Render text as HTML with matched spans wrapped in <tag>."""
    parts = []
    for span in highlight(text, query):
        if span.kind == MATCHED:
            parts.append(f"<{tag}>{escape(span.text)}</{tag}>")
        else:
            parts.append(escape(span.text))
    return "".join(parts)


def spans_to_json(spans):
    return [{"kind": s.kind, "text": s.text} for s in spans]
