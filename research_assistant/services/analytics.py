# services/analytics.py
"""
Analytics service
-----------------
Statistics over the selected papers, feeding the visualization cards:
publication years, keyword counts, journals and citation totals.

An empty selection returns the explicit NO_DATA state rather than
placeholder numbers.
"""

from collections import defaultdict

NO_DATA = {"status": "no_data"}


def get_overview_stats(papers: list):
    """
    Compute high-level statistics.

    Returns:
        dict with total papers, total citations, unique keywords
    """
    total_citations = 0
    keyword_set = set()

    for p in papers:
        total_citations += int(p.get("citations") or 0)

        for kw in p.get("keywords", []) or []:
            if kw and isinstance(kw, str):
                keyword_set.add(kw.strip().lower())

    return {
        "total_papers": len(papers),
        "total_citations": total_citations,
        "unique_keywords": len(keyword_set),
    }


def get_top_cited_papers(papers: list, limit: int = 10):
    """
    Get top cited papers.

    Returns:
        list of dicts: {id, title, citations}
    """
    ranked = [
        {"id": p.get("id"), "title": p.get("title", ""), "citations": int(p.get("citations") or 0)}
        for p in papers
    ]

    ranked.sort(key=lambda x: x["citations"], reverse=True)
    return ranked[:limit]


def get_keyword_statistics(papers: list):
    """
    Count how many papers carry each keyword.

    Returns:
        list of dicts: {term, papers}
    """
    keyword_stats = defaultdict(int)

    for p in papers:
        seen = set()
        for kw in p.get("keywords", []) or []:
            if not kw or not isinstance(kw, str):
                continue
            key = kw.strip().lower()
            if key and key not in seen:
                seen.add(key)
                keyword_stats[key] += 1

    results = [{"term": k, "papers": v} for k, v in keyword_stats.items()]
    results.sort(key=lambda x: (-x["papers"], x["term"]))
    return results


def get_year_distribution(papers: list):
    """
    Count number of papers per publication year. Papers without a
    year are left out.

    Returns:
        dict: {year: count}
    """
    year_counts = defaultdict(int)

    for p in papers:
        year = p.get("year")
        if isinstance(year, int) and not isinstance(year, bool):
            year_counts[year] += 1
        elif isinstance(year, str) and year.isdigit():
            year_counts[int(year)] += 1

    return dict(sorted(year_counts.items()))


def get_journal_distribution(papers: list):
    """Count papers per journal, most common first."""
    counts = defaultdict(int)
    for p in papers:
        journal = p.get("journal")
        if journal:
            counts[journal] += 1
    return dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))


def summarize_selection(papers: list):
    """All visualization data for a selection, or NO_DATA when empty."""
    if not papers:
        return dict(NO_DATA)

    return {
        "status": "ok",
        "overview": get_overview_stats(papers),
        "top_cited": get_top_cited_papers(papers),
        "keywords": get_keyword_statistics(papers),
        "years": get_year_distribution(papers),
        "journals": get_journal_distribution(papers),
    }
