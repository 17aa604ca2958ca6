# services/session.py
"""
Search session
--------------
Explicit state for one user's search: the loaded corpus, the current
query, the ranked results and the paper selection. Everything the
ranking service needs is passed in as plain arguments; nothing here
changes the corpus.

- Debouncer: re-ranking as a cancellable scheduled task
- SelectionSet: order-preserving selection, keyed by paper id
- SearchSession: loading / ready / failed states around rank()
"""

import logging
import os
import threading

from ..utils.loader import CorpusUnavailable, normalize_papers
from .ranking import rank
from .search import normalize_query

LOGGER = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.2
DEFAULT_MAX_SELECTIONS = 10


def configured_debounce_seconds():
    """Quiet period from SEARCH_DEBOUNCE_SECONDS, 0.2s when unset."""
    return float(os.getenv("SEARCH_DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS))


LOADING = "loading"
READY = "ready"
FAILED = "failed"


class Debouncer:
    """
    Run callback once the trigger calls have been quiet for `delay`
    seconds. Each trigger cancels the pending call and schedules a new
    one, so at most one call is pending at any time.
    """

    def __init__(self, callback, delay: float = None):
        self.callback = callback
        self.delay = configured_debounce_seconds() if delay is None else delay
        self._lock = threading.Lock()
        self._timer = None
        self._args = ()
        self._generation = 0

    @property
    def pending(self):
        with self._lock:
            return self._timer is not None

    def trigger(self, *args):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._args = args
            self._timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self):
        """Run the pending call now, if there is one."""
        with self._lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
            args = self._args
        self.callback(*args)
        return True

    def _fire(self, generation):
        with self._lock:
            # a newer trigger, a cancel or a flush replaced this call
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
            args = self._args
        self.callback(*args)


class SelectionSet:
    """Papers picked by the user, in the order they were picked."""

    def __init__(self, max_selections: int = DEFAULT_MAX_SELECTIONS):
        self.max_selections = max_selections
        self._papers = []

    def __iter__(self):
        return iter(list(self._papers))

    def __len__(self):
        return len(self._papers)

    def contains(self, paper_id):
        return any(p.get("id") == paper_id for p in self._papers)

    def ids(self):
        return [p.get("id") for p in self._papers]

    def add(self, paper: dict):
        """Add a paper. Returns False when it is already there or the set is full."""
        if self.contains(paper.get("id")) or len(self._papers) >= self.max_selections:
            return False
        self._papers.append(paper)
        return True

    def remove(self, paper_id):
        before = len(self._papers)
        self._papers = [p for p in self._papers if p.get("id") != paper_id]
        return len(self._papers) != before

    def toggle(self, paper: dict):
        """Flip membership. Returns whether the paper is selected afterwards."""
        if self.remove(paper.get("id")):
            return False
        return self.add(paper)

    def select_all(self, results: list):
        """
        Select the shown results up to the cap, or clear the selection
        when it already holds as many papers as are shown.
        """
        if results and len(self._papers) == len(results):
            self.clear()
            return
        self._papers = list(results[: self.max_selections])

    def clear(self):
        self._papers = []

    def paper_for_citation(self, number: int):
        """Paper cited as [number] in an answer, 1-based; None if out of range."""
        if isinstance(number, bool) or not isinstance(number, int):
            return None
        if 1 <= number <= len(self._papers):
            return self._papers[number - 1]
        return None


class SearchSession:
    """
    Corpus + query + results for one search panel.

    The session starts in the loading state and shows no results until
    load() finishes. A failed load leaves an empty corpus behind.
    """

    def __init__(self, policy=None, debounce_seconds: float = None,
                 on_results=None, max_selections: int = DEFAULT_MAX_SELECTIONS):
        self.policy = policy
        self.on_results = on_results
        self.state = LOADING
        self.corpus = []
        self.query = ""
        self.selection = SelectionSet(max_selections)
        self._results = []
        self._debouncer = Debouncer(self._rerank, debounce_seconds)

    @property
    def results(self):
        if self.state == LOADING:
            return []
        return list(self._results)

    def load(self, fetch):
        """
        Load the corpus through `fetch`, a callable returning raw paper
        records. Any failure leaves the session with an empty corpus.
        """
        self.state = LOADING
        try:
            raw = fetch()
            if raw is None:
                raise CorpusUnavailable("corpus loader returned nothing")
            self.corpus = normalize_papers(raw)
            self.state = READY
        except Exception as exc:  # loader is external code, any failure means no corpus
            LOGGER.warning("Corpus load failed: %s", exc)
            self.corpus = []
            self.state = FAILED

        self._publish(rank(self.corpus, self.query, self.policy))
        return self.state

    def set_query(self, query: str):
        """Record a query change and re-rank after the quiet period."""
        self.query = normalize_query(query)
        if self.state == LOADING:
            return
        self._debouncer.trigger(self.query)

    def search(self, query: str):
        """Rank right away, dropping any pending debounced re-rank."""
        self._debouncer.cancel()
        self.query = normalize_query(query)
        self._rerank(self.query)
        return self.results

    def flush(self):
        return self._debouncer.flush()

    def close(self):
        self._debouncer.cancel()

    def _rerank(self, query):
        if self.state == LOADING:
            return
        self._publish(rank(self.corpus, query, self.policy))

    def _publish(self, results):
        self._results = results
        if self.on_results is not None and self.state != LOADING:
            self.on_results(list(results))
