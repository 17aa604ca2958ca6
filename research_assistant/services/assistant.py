# services/assistant.py
"""
Assistant service
-----------------
Answers questions using only the text of the selected papers.

- build_context: numbered [n] blocks in selection order
- ask: Gemini generateContent call over HTTP
- find_citations: resolves [n] markers in an answer to selected papers
"""

import logging
import os
import re

import requests

LOGGER = logging.getLogger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_MODEL = "gemini-2.5-pro"
REQUEST_TIMEOUT_SECONDS = 60

NOT_FOUND_ANSWER = "The information is not found in this summary."

_CITATION = re.compile(r"\[(\d+)\]")


class AssistantError(RuntimeError):
    """The question could not be answered."""


def build_context(papers):
    """
    Join the selected papers into the context sent to the model.
    Paper n of the selection is labelled [n] so answers can cite it.
    """
    blocks = []
    for n, paper in enumerate(papers, start=1):
        title = paper.get("title") or ""
        abstract = paper.get("abstract") or ""
        blocks.append(f"[{n}] {title}\n{abstract}".rstrip())
    return "\n\n".join(blocks)


def build_prompt(question: str, context: str):
    return (
        "Based strictly and only on the following scientific context, answer the user's question. "
        "Do not use any outside information. If the answer is not in the text, say "
        f'"{NOT_FOUND_ANSWER}"\n'
        f"Context: --- {context} ---\n"
        f'User question: "{question}"'
    )


def ask(question: str, context: str, api_key: str = None, model: str = None):
    """
    Ask the model a question about the given context.

    Returns:
        answer text

    Raises:
        AssistantError: missing question/context, no API key, request
        failure or a response without text.
    """
    question = (question or "").strip()
    context = (context or "").strip()
    if not question or not context:
        raise AssistantError("Missing question or context")

    api_key = api_key or os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise AssistantError("GEMINI_API_KEY not configured")

    model = model or os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
    LOGGER.info("Asking %s (%s context chars)", model, len(context))

    payload = {"contents": [{"parts": [{"text": build_prompt(question, context)}]}]}
    try:
        response = requests.post(
            GEMINI_API_URL.format(model=model),
            params={"key": api_key},
            json=payload,
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        body = response.json()
    except (requests.RequestException, ValueError) as exc:
        LOGGER.warning("Gemini request failed: %s", exc)
        raise AssistantError("Failed to get AI response") from exc

    return _extract_text(body)


def _extract_text(body):
    try:
        parts = body["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as exc:
        raise AssistantError(f"Unexpected Gemini response shape: {body}") from exc

    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()
    if not text:
        raise AssistantError("Gemini returned an empty answer")
    return text


def find_citations(answer: str, papers):
    """
    Citation markers in the answer that point at a selected paper.

    Returns:
        list of dicts {number, id, title, url}, in order of first
        appearance, without duplicates. Numbers outside the selection
        are ignored.
    """
    papers = list(papers)
    found = []
    seen = set()
    for m in _CITATION.finditer(answer or ""):
        number = int(m.group(1))
        if number in seen or not 1 <= number <= len(papers):
            continue
        seen.add(number)
        paper = papers[number - 1]
        found.append({
            "number": number,
            "id": paper.get("id"),
            "title": paper.get("title"),
            "url": paper.get("url"),
        })
    return found
