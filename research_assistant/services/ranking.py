# services/ranking.py
"""
Ranking Service
---------------
Weighted multi-field relevance scoring over the in-memory corpus.

Score components (all additive, defaults in DEFAULT_POLICY):
1. Title rules: exact match, prefix, substring, whole word
2. Keyword occurrences (keywords joined with single spaces)
3. Abstract occurrences
4. Author occurrences (authors joined with ", ")

Papers scoring 0 are dropped, the rest are sorted by descending score.
Equal scores keep their corpus order. When nothing scores, the corpus
is returned unranked.

Complexity:
- Scoring: O(N * L) where N = papers, L = text length per paper.
- Sorting: O(M log M) where M = matched papers.
"""

from collections import namedtuple
from dataclasses import dataclass, fields

from .search import compile_term, count_matches, has_match, normalize_query

ScoredResult = namedtuple("ScoredResult", ["paper", "score"])


@dataclass(frozen=True)
class RankingPolicy:
    """Field weights used by score_paper."""

    exact_title: int = 300
    title_prefix: int = 200
    title_substring: int = 150
    title_word: int = 80
    keyword: int = 60
    abstract: int = 30
    author: int = 20

    @classmethod
    def from_mapping(cls, weights):
        """
        Build a policy from a {name: weight} mapping, starting from
        the defaults. Unknown names and negative weights are rejected.
        """
        if not weights:
            return cls()

        known = {f.name for f in fields(cls)}
        unknown = set(weights) - known
        if unknown:
            raise ValueError(f"Unknown ranking weights: {', '.join(sorted(unknown))}")

        values = {}
        for name, weight in weights.items():
            weight = int(weight)
            if weight < 0:
                raise ValueError(f"Ranking weight {name} must be non-negative")
            values[name] = weight
        return cls(**values)


DEFAULT_POLICY = RankingPolicy()


def _title_score(title: str, term: str, policy: RankingPolicy):
    pattern = compile_term(term)
    if pattern is None or not title:
        return 0

    score = 0
    if pattern.fullmatch(title):
        score += policy.exact_title
    if pattern.match(title):
        score += policy.title_prefix
    if pattern.search(title):
        score += policy.title_substring
    if has_match(title, term, whole_word=True):
        score += policy.title_word
    return score


def score_paper(paper: dict, query: str, policy: RankingPolicy = None):
    """
    Compute the relevance score of one paper for a query.

    Returns:
        non-negative int, 0 for an empty query
    """
    policy = policy or DEFAULT_POLICY
    term = normalize_query(query)
    if not term:
        return 0

    keywords = " ".join(k for k in paper.get("keywords") or [] if isinstance(k, str))
    authors = ", ".join(a for a in paper.get("authors") or [] if isinstance(a, str))

    score = _title_score(paper.get("title") or "", term, policy)
    score += policy.keyword * count_matches(keywords, term)
    score += policy.abstract * count_matches(paper.get("abstract") or "", term)
    score += policy.author * count_matches(authors, term)
    return score


def score_papers(corpus: list, query: str, policy: RankingPolicy = None):
    """
    Score every paper and keep the ones that match.

    Returns:
        list of ScoredResult sorted by descending score; ties keep
        corpus order. Empty for an empty query or no matches.
    """
    term = normalize_query(query)
    if not term:
        return []

    scored = []
    for paper in corpus:
        score = score_paper(paper, term, policy)
        if score > 0:
            scored.append(ScoredResult(paper, score))

    # sorted() is stable, reverse=True included
    return sorted(scored, key=lambda r: r.score, reverse=True)


def rank(corpus: list, query: str, policy: RankingPolicy = None):
    """
    Order the corpus by relevance to the query.

    An empty query, or a query nothing matches, returns the corpus
    in its original order.
    """
    if not normalize_query(query):
        return list(corpus)

    scored = score_papers(corpus, query, policy)
    if not scored:
        return list(corpus)

    return [r.paper for r in scored]
