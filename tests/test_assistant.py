from unittest.mock import MagicMock, patch

import pytest
import requests

from research_assistant.services.assistant import (
    NOT_FOUND_ANSWER,
    AssistantError,
    ask,
    build_context,
    build_prompt,
    find_citations,
)


def _gemini_response(text: str) -> MagicMock:
    mock = MagicMock()
    mock.json.return_value = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return mock


def test_build_context_numbers_papers_in_selection_order(corpus) -> None:
    context = build_context([corpus[3], corpus[0]])
    assert context.startswith("[1] Bone Density Changes")
    assert "\n\n[2] Effects of Microgravity" in context
    assert "bone metabolism" in context


def test_build_prompt_restricts_to_context() -> None:
    prompt = build_prompt("What happens to bones?", "[1] Bone study")
    assert "only on the following scientific context" in prompt
    assert NOT_FOUND_ANSWER in prompt
    assert "--- [1] Bone study ---" in prompt
    assert '"What happens to bones?"' in prompt


def test_ask_posts_prompt_and_returns_text() -> None:
    with patch("research_assistant.services.assistant.requests.post",
               return_value=_gemini_response("Bone density drops [1].")) as post:
        answer = ask("What happens?", "[1] Bone study", api_key="k", model="gemini-test")

    assert answer == "Bone density drops [1]."
    args, kwargs = post.call_args
    assert args[0].endswith("/models/gemini-test:generateContent")
    assert kwargs["params"] == {"key": "k"}
    assert kwargs["timeout"] > 0
    assert "What happens?" in kwargs["json"]["contents"][0]["parts"][0]["text"]


@pytest.mark.parametrize("question, context", [("", "ctx"), ("q", ""), ("  ", "  ")])
def test_ask_requires_question_and_context(question, context) -> None:
    with pytest.raises(AssistantError):
        ask(question, context, api_key="k")


def test_ask_requires_api_key(monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(AssistantError, match="GEMINI_API_KEY"):
        ask("q", "ctx")


def test_ask_wraps_http_errors() -> None:
    with patch("research_assistant.services.assistant.requests.post",
               side_effect=requests.ConnectionError("down")):
        with pytest.raises(AssistantError):
            ask("q", "ctx", api_key="k")


def test_ask_rejects_unexpected_shape() -> None:
    response = MagicMock()
    response.json.return_value = {"candidates": []}
    with patch("research_assistant.services.assistant.requests.post", return_value=response):
        with pytest.raises(AssistantError, match="response shape"):
            ask("q", "ctx", api_key="k")


def test_find_citations_maps_to_selection(corpus) -> None:
    selection = [corpus[3], corpus[1]]
    found = find_citations("Bone loss [1], DNA damage [2][1], see also [7].", selection)

    assert [c["number"] for c in found] == [1, 2]
    assert found[0]["id"] == 4
    assert found[1]["url"] == "https://nasa.gov/research/paper2"


def test_find_citations_without_selection() -> None:
    assert find_citations("Answer [1]", []) == []
    assert find_citations(None, []) == []
