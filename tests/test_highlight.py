import pytest

from research_assistant.services.highlight import (
    MATCHED,
    PLAIN,
    Span,
    highlight,
    highlight_html,
    spans_to_json,
)
from research_assistant.services.ranking import score_paper
from research_assistant.services.search import InvalidQueryPattern, count_matches, escape_query
from research_assistant.utils.loader import normalize_papers


@pytest.mark.parametrize("query", ["", "   ", None])
def test_empty_query_is_one_plain_span(query) -> None:
    assert highlight("Bone loss in orbit", query) == [Span(PLAIN, "Bone loss in orbit")]


def test_escaped_query_marks_literal_text() -> None:
    spans = highlight("Cost: $3.5 million", "3.5")
    assert spans == [
        Span(PLAIN, "Cost: $"),
        Span(MATCHED, "3.5"),
        Span(PLAIN, " million"),
    ]


def test_dot_is_not_a_wildcard() -> None:
    assert highlight("Cost: 315 million", "3.5") == [Span(PLAIN, "Cost: 315 million")]


def test_case_insensitive_and_keeps_original_case() -> None:
    spans = highlight("Microgravity and microgravity", "MICROGRAVITY")
    assert [s for s in spans if s.kind == MATCHED] == [
        Span(MATCHED, "Microgravity"),
        Span(MATCHED, "microgravity"),
    ]


def test_spans_rebuild_original_text() -> None:
    text = "Radiation (cosmic) and radiation shielding"
    spans = highlight(text, "radiation")
    assert "".join(s.text for s in spans) == text
    assert spans[0] == Span(MATCHED, "Radiation")


def test_query_is_trimmed() -> None:
    assert highlight("bone density", "  bone ")[0] == Span(MATCHED, "bone")


def test_empty_text() -> None:
    assert highlight("", "bone") == [Span(PLAIN, "")]


def test_highlighted_spans_agree_with_scoring() -> None:
    abstract = "Levels (x+y) rose; (X+Y) fell."
    paper = normalize_papers([{"title": "T", "abstract": abstract}])[0]
    matched = [s for s in highlight(abstract, "(x+y)") if s.kind == MATCHED]
    assert len(matched) == count_matches(abstract, "(x+y)") == 2
    assert score_paper(paper, "(x+y)") == 30 * len(matched)


def test_highlight_html_escapes_text() -> None:
    assert highlight_html("<b>Bone</b> & bone", "bone") == \
        "&lt;b&gt;<mark>Bone</mark>&lt;/b&gt; &amp; <mark>bone</mark>"


def test_spans_to_json() -> None:
    assert spans_to_json(highlight("a bone", "bone")) == [
        {"kind": "plain", "text": "a "},
        {"kind": "matched", "text": "bone"},
    ]


def test_escape_query_rejects_non_strings() -> None:
    with pytest.raises(InvalidQueryPattern):
        escape_query(42)
