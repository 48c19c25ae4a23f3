"""
Fuzzy candidate search and ranking for the interviewer dashboard.

Candidates are filtered by their best Jaro-Winkler match against the query,
the filtered lists are cached per (collection size, query), and the result is
sorted by the key the interviewer selected.
"""
import asyncio
import logging
from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, Sequence, Tuple, TypeVar

from interview_assistant.models.interview import Candidate
from interview_assistant.utils.algorithms import jaro_winkler_similarity
from interview_assistant.utils.constants import (
    SEARCH_CACHE_SIZE,
    SEARCH_DEBOUNCE_SECONDS,
    SEARCH_THRESHOLD,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SORT_KEYS = ("name", "score", "date")
SORT_ORDERS = ("asc", "desc")


class LRUCache(Generic[T]):
    """Least-recently-used cache with a fixed capacity."""

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: "OrderedDict[Hashable, T]" = OrderedDict()

    def get(self, key: Hashable) -> Optional[T]:
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def set(self, key: Hashable, value: T) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self.capacity:
            self._entries.popitem(last=False)
        self._entries[key] = value

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class Debouncer:
    """
    Delays a call until no new call has arrived for ``delay`` seconds.

    Only the last call of a burst runs. Needs a running asyncio loop; call
    ``flush()`` to run the pending call immediately.
    """

    def __init__(self, func: Callable[..., Any], delay: float = SEARCH_DEBOUNCE_SECONDS):
        self.func = func
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[Tuple[tuple, dict]] = None

    def __call__(self, *args, **kwargs) -> None:
        self.cancel()
        self._pending = (args, kwargs)
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def _fire(self) -> None:
        self._handle = None
        if self._pending is None:
            return
        args, kwargs = self._pending
        self._pending = None
        self.func(*args, **kwargs)

    def flush(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._fire()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None


def candidate_match_score(candidate: Candidate, term: str) -> float:
    """Best similarity between the (lowercased) term and any searchable field."""
    fields = [candidate.name, candidate.email, candidate.position]
    fields.extend(candidate.skills)
    return max(
        (jaro_winkler_similarity((value or "").lower(), term) for value in fields),
        default=0.0,
    )


class CandidateSearchIndex:
    """Fuzzy filter over the candidate collection with an LRU result cache."""

    def __init__(self, threshold: float = SEARCH_THRESHOLD, cache_size: int = SEARCH_CACHE_SIZE):
        self.threshold = threshold
        # Cached entries hold candidate ids so a hit reflects the latest candidate data
        self.cache: LRUCache[List[str]] = LRUCache(cache_size)

    def fuzzy_search(self, candidates: Sequence[Candidate], term: str) -> List[Candidate]:
        """
        Filter candidates whose best field similarity exceeds the threshold.

        Args:
            candidates: The full candidate collection
            term: Free-text query

        Returns:
            Matching candidates ordered by relevance (best first); the whole
            collection when the query is blank
        """
        if not term or not term.strip():
            return list(candidates)

        search_term = term.lower()
        cache_key = (len(candidates), search_term)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Search cache hit for '{search_term}'")
            by_id = {c.id: c for c in candidates}
            return [by_id[cid] for cid in cached if cid in by_id]

        scored = [(candidate_match_score(c, search_term), c) for c in candidates]
        matches = [item for item in scored if item[0] > self.threshold]
        matches.sort(key=lambda item: item[0], reverse=True)
        results = [candidate for _, candidate in matches]

        self.cache.set(cache_key, [c.id for c in results])
        logger.debug(f"Search '{search_term}' matched {len(results)} of {len(candidates)} candidates")
        return list(results)


def _created_timestamp(candidate: Candidate) -> float:
    try:
        return datetime.fromisoformat(candidate.created_at).timestamp()
    except (TypeError, ValueError):
        return 0.0


_SORT_VALUES: Dict[str, Callable[[Candidate], Any]] = {
    "name": lambda c: c.name.lower(),
    "score": lambda c: c.score or 0,
    "date": _created_timestamp,
}


def sort_candidates(
    candidates: Sequence[Candidate],
    sort_by: str = "date",
    sort_order: str = "desc"
) -> List[Candidate]:
    """Stable sort by name, score or creation date in the given direction."""
    if sort_by not in _SORT_VALUES:
        raise ValueError(f"Unknown sort key: {sort_by}")
    if sort_order not in SORT_ORDERS:
        raise ValueError(f"Unknown sort order: {sort_order}")
    return sorted(candidates, key=_SORT_VALUES[sort_by], reverse=(sort_order == "desc"))


class CandidateSearchController:
    """
    Dashboard-side search state: query, sort key and direction.

    None of this state is persisted; it resets with every new controller.
    """

    def __init__(
        self,
        get_candidates: Callable[[], Sequence[Candidate]],
        index: Optional[CandidateSearchIndex] = None,
        debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS,
        sort_by: str = "date",
        sort_order: str = "desc"
    ):
        self._get_candidates = get_candidates
        self.index = index or CandidateSearchIndex()
        self.search_term = ""
        self.sort_by = sort_by
        self.sort_order = sort_order
        self._debouncer = Debouncer(self.apply_search, debounce_seconds)

    def update_search(self, term: str) -> None:
        """Record a keystroke; filtering happens once typing settles."""
        self._debouncer(term)

    def apply_search(self, term: str) -> None:
        self.search_term = term

    def clear_search(self) -> None:
        self._debouncer.cancel()
        self.search_term = ""

    def set_sort(self, sort_by: str, sort_order: Optional[str] = None) -> None:
        if sort_by not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {sort_by}")
        if sort_order is not None and sort_order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {sort_order}")
        self.sort_by = sort_by
        if sort_order is not None:
            self.sort_order = sort_order

    def results(self) -> List[Candidate]:
        filtered = self.index.fuzzy_search(self._get_candidates(), self.search_term)
        return sort_candidates(filtered, self.sort_by, self.sort_order)

    def stats(self) -> Dict[str, Any]:
        candidates = self._get_candidates()
        filtered = self.index.fuzzy_search(candidates, self.search_term)
        return {
            "total": len(candidates),
            "filtered": len(filtered),
            "has_active_filter": bool(self.search_term.strip()),
        }
