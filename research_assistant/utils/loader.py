# utils/loader.py
"""
Dataset loader and normalizer
-----------------------------
Loads the papers JSON dataset and normalizes every raw record into
the uniform paper shape used by search, ranking and the API:

    id, title, abstract, authors, year, journal,
    keywords, citations, url

Raw records come from several exports, so field names differ and
fields may be missing. Identifiers are the 1-based position of the
record in the source list.
"""

import json
import logging
import os
import re
from urllib.parse import urlparse

LOGGER = logging.getLogger(__name__)

UNTITLED = "Untitled"
YEAR_NOT_AVAILABLE = "N/A"
JOURNAL_PLACEHOLDER = "-"
NO_LINK = "#"

_AUTHOR_SPLIT = re.compile(r",\s*")


class CorpusUnavailable(Exception):
    """Raised when the raw dataset cannot be read or parsed."""


def _normalize_url(url: str):
    """
    Normalize and validate external URLs.
    Returns a valid http(s) URL or None.
    """
    if not url or not isinstance(url, str):
        return None

    u = url.strip()
    if not u or u == NO_LINK:
        return None

    if u.startswith("http://") or u.startswith("https://"):
        return u

    parsed = urlparse(u)
    if parsed.scheme and parsed.netloc:
        return u

    if "." in u and " " not in u:
        return "https://" + u

    return None


def _first_present(raw: dict, *fields):
    """Return the first value that is neither None nor blank."""
    for field in fields:
        val = raw.get(field)
        if val is None:
            continue
        if isinstance(val, str) and not val.strip():
            continue
        return val.strip() if isinstance(val, str) else val
    return None


def _split_names(value):
    if isinstance(value, str):
        return [n.strip() for n in _AUTHOR_SPLIT.split(value) if n.strip()]
    if isinstance(value, (list, tuple)):
        # non-string items (nested objects, numbers) are dropped
        return [n.strip() for n in value if isinstance(n, str) and n.strip()]
    return []


def _coerce_year(value):
    if value is None:
        return YEAR_NOT_AVAILABLE
    if isinstance(value, bool):
        return YEAR_NOT_AVAILABLE
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


def _coerce_citations(value):
    if isinstance(value, bool):
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError):
        return 0
    return max(count, 0)


def _detect_url(raw: dict):
    candidate = _first_present(raw, "url", "link", "Link", "pdf", "paper_url")

    # DOI fallback
    if not candidate:
        doi = _first_present(raw, "doi", "DOI")
        if isinstance(doi, str):
            candidate = "https://doi.org/" + doi

    # arXiv fallback
    if not candidate:
        arx = _first_present(raw, "arxiv", "arxiv_id", "arXiv")
        if isinstance(arx, str):
            candidate = f"https://arxiv.org/abs/{arx}"

    return _normalize_url(candidate) or NO_LINK


def normalize_paper(raw, position: int):
    """
    Normalize a single raw record.

    Args:
        raw: the record as found in the dataset (non-dict values
             normalize to a paper made only of defaults)
        position: 1-based position in the source list, used as id

    Returns:
        dict with the normalized paper fields
    """
    if not isinstance(raw, dict):
        raw = {}

    title = _first_present(raw, "Title", "title")
    journal = _first_present(raw, "journal", "source")
    keywords = raw.get("keywords")
    citations = _first_present(raw, "citations", "citations_count")

    return {
        "id": position,
        "title": str(title) if title is not None else UNTITLED,
        "abstract": str(raw.get("abstract") or ""),
        "authors": _split_names(raw.get("authors")),
        "year": _coerce_year(_first_present(raw, "year", "publication_year")),
        "journal": str(journal) if journal is not None else JOURNAL_PLACEHOLDER,
        "keywords": _split_names(keywords) if keywords else [],
        "citations": _coerce_citations(citations),
        "url": _detect_url(raw),
    }


def normalize_papers(raw_papers):
    """
    Normalize a whole raw dataset, one paper per input record,
    in input order.
    """
    return [normalize_paper(raw, i) for i, raw in enumerate(raw_papers or [], start=1)]


def load_raw_papers(data_path: str):
    """
    Read the raw dataset.

    Raises:
        CorpusUnavailable: the file is missing, unreadable, not JSON,
        or does not hold a JSON array.
    """
    if not data_path or not os.path.exists(data_path):
        raise CorpusUnavailable(f"Dataset not found: {data_path}")

    try:
        with open(data_path, "r", encoding="utf-8") as f:
            papers = json.load(f)
    except (OSError, ValueError) as exc:
        raise CorpusUnavailable(f"Could not read dataset {data_path}: {exc}") from exc

    if not isinstance(papers, list):
        raise CorpusUnavailable(f"Dataset {data_path} must be a JSON array")

    return papers


def load_corpus(data_path: str):
    """
    Load and normalize the papers dataset.

    A dataset that cannot be loaded yields an empty corpus so that
    search keeps working and simply shows no results.

    Returns:
        list of normalized paper dicts
    """
    try:
        raw = load_raw_papers(data_path)
    except CorpusUnavailable as exc:
        LOGGER.warning("Corpus unavailable, continuing with an empty corpus: %s", exc)
        return []

    papers = normalize_papers(raw)
    LOGGER.info("Loaded %s papers from %s", len(papers), data_path)
    return papers


def index_by_id(papers: list):
    """Build an id -> paper lookup."""
    return {p["id"]: p for p in papers}
