"""Search history, popular query tracking and autocomplete suggestions.

History is persisted through a KeyValueStore under a fixed key so it
survives sessions. Popular queries live for the lifetime of the tracker and
feed the suggestion ranking.
"""

import logging
import time
from typing import Callable, Iterable, List, Optional

from snipsearch.core.schemas import PopularQuery, Snippet
from snipsearch.core.storage import KeyValueStore

logger = logging.getLogger(__name__)

HISTORY_STORAGE_KEY = "search-history"
POPULAR_QUERY_LIMIT = 20
SUGGESTION_LIMIT = 10
MIN_SUGGESTION_QUERY_LENGTH = 2


class SearchHistory:
    """Most-recent-first list of distinct completed queries.

    Attributes:
        max_size: Number of queries retained
        storage_key: Key used in the persistent store
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        max_size: int = 50,
        storage_key: str = HISTORY_STORAGE_KEY,
    ):
        self._store = store
        self.max_size = max_size
        self.storage_key = storage_key
        self._items: List[str] = self._load()

    def _load(self) -> List[str]:
        if self._store is None:
            return []
        stored = self._store.get(self.storage_key, [])
        if not isinstance(stored, list) or not all(isinstance(q, str) for q in stored):
            logger.warning(f"Ignoring malformed search history under '{self.storage_key}'")
            return []
        return stored[: self.max_size]

    def _save(self) -> None:
        if self._store is not None:
            self._store.set(self.storage_key, list(self._items))

    def add(self, query: str) -> bool:
        """Move query to the front, dropping any earlier occurrence."""
        if not query or not query.strip():
            return False
        self._items = [query, *[item for item in self._items if item != query]][: self.max_size]
        self._save()
        return True

    def items(self) -> List[str]:
        return list(self._items)

    def clear(self) -> None:
        self._items = []
        if self._store is not None:
            self._store.delete(self.storage_key)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, query: str) -> bool:
        return query in self._items


class PopularQueries:
    """Use counts per exact query string, ranked by count."""

    def __init__(self, limit: int = POPULAR_QUERY_LIMIT, clock: Callable[[], float] = time.time):
        self.limit = limit
        self._clock = clock
        self._entries: List[PopularQuery] = []

    def record(self, query: str, result_count: int, search_time: float) -> PopularQuery:
        """Count one use of query and re-rank."""
        now = self._clock()
        entry = next((e for e in self._entries if e.query == query), None)

        if entry is None:
            entry = PopularQuery(
                query=query,
                count=1,
                last_used=now,
                average_results=float(result_count),
                average_time=float(search_time),
            )
            self._entries.append(entry)
        else:
            entry.count += 1
            entry.last_used = now
            entry.average_results += (result_count - entry.average_results) / entry.count
            entry.average_time += (search_time - entry.average_time) / entry.count

        # Stable: equal counts keep first-seen order
        self._entries.sort(key=lambda e: e.count, reverse=True)
        del self._entries[self.limit:]
        return entry

    def items(self) -> List[PopularQuery]:
        return [e.model_copy() for e in self._entries]

    def queries(self) -> List[str]:
        return [e.query for e in self._entries]

    def clear(self) -> None:
        self._entries = []

    def __len__(self) -> int:
        return len(self._entries)


def generate_suggestions(
    query: str,
    history: Iterable[str] = (),
    popular: Iterable[str] = (),
    items: Iterable[Snippet] = (),
    limit: int = SUGGESTION_LIMIT,
) -> List[str]:
    """Suggest completions containing query, case-insensitively.

    Candidates come from history, then popular queries, then item titles
    and tags. Duplicates are dropped keeping first occurrence.
    """
    if not query or len(query) < MIN_SUGGESTION_QUERY_LENGTH:
        return []

    needle = query.lower()
    suggestions: dict = {}

    def _offer(candidate: str) -> bool:
        if candidate and needle in candidate.lower():
            suggestions.setdefault(candidate, None)
        return len(suggestions) >= limit

    for candidate in history:
        if _offer(candidate):
            return list(suggestions)[:limit]
    for candidate in popular:
        if _offer(candidate):
            return list(suggestions)[:limit]
    for item in items:
        if _offer(item.title):
            break
        if any(_offer(tag) for tag in item.tags or []):
            break

    return list(suggestions)[:limit]
