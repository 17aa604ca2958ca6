#!/usr/bin/env python3
"""
search_corpus.py

Purpose:
- Load a papers JSON dataset through the normalizer
- Rank it for a query exactly like the API does
- Print the results with matches marked as [[...]]

Usage:
    python scripts/search_corpus.py "microgravity" --papers data/papers.json --limit 5
"""

import argparse
import logging
import os

from dotenv import load_dotenv

from research_assistant.services.highlight import MATCHED, highlight
from research_assistant.services.ranking import rank, score_paper
from research_assistant.utils.loader import CorpusUnavailable, load_raw_papers, normalize_papers


def parse_args():
    parser = argparse.ArgumentParser(description="Rank a papers dataset for a query")
    parser.add_argument("query", nargs="?", default="", help="Search text (empty lists the corpus as-is)")
    parser.add_argument("--papers", default=os.getenv("PAPERS_PATH"), help="Path to the papers JSON dataset")
    parser.add_argument("--limit", type=int, default=10, help="Maximum number of results to print")
    return parser.parse_args()


def render(text, query):
    return "".join(f"[[{s.text}]]" if s.kind == MATCHED else s.text for s in highlight(text, query))


def main():
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = parse_args()

    # -------- Load --------
    try:
        papers = normalize_papers(load_raw_papers(args.papers))
    except CorpusUnavailable as exc:
        raise SystemExit(f"Error: {exc}")

    # -------- Rank --------
    results = rank(papers, args.query)
    print(f"{len(results)} of {len(papers)} papers")

    for p in results[: args.limit]:
        score = score_paper(p, args.query)
        print(f"[{p['id']}] ({score}) {render(p['title'], args.query)}")
        print(f"    {', '.join(p['authors'][:2])}{' et al.' if len(p['authors']) > 2 else ''}"
              f" · {p['year']} · {p['journal']}")

    print("Done.")


if __name__ == "__main__":
    main()
