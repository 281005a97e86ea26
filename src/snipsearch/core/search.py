"""Search orchestration for snippet collections.

The SearchOrchestrator is the session-scoped controller behind a search box.
Callers mutate the query, mode, sort and filters; every mutation schedules a
debounced recompute, and results are published to subscribers once input
settles. ``search()`` runs the same pipeline immediately and returns the
result list.

Pipeline: cache lookup -> match strategy -> filters -> sort -> truncate to
max_results -> cache write -> history and statistics.

The public entry points never raise. Strategy failures, invalid patterns
and bad configuration values degrade to empty or unfiltered results and are
reported through logging.
"""

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from snipsearch.config import SearchConfig
from snipsearch.core.cache import CacheManager, make_search_key
from snipsearch.core.debounce import Debouncer
from snipsearch.core.filters import apply_filters
from snipsearch.core.history import PopularQueries, SearchHistory, generate_suggestions
from snipsearch.core.schemas import (
    Filter,
    FilterOperator,
    PopularQuery,
    SearchMode,
    SearchOptions,
    SearchResultItem,
    SearchState,
    SearchStats,
    SearchTotals,
    Snippet,
    SortField,
    SortOrder,
    coerce_snippets,
)
from snipsearch.core.sorting import sort_results
from snipsearch.core.strategies import MatchStrategy, create_strategy, parse_mode

logger = logging.getLogger(__name__)

ResultListener = Callable[[List[SearchResultItem]], Any]

SEARCH_CACHE_SIZE = 50
SEARCH_CACHE_CLEANUP_MS = 60_000


class SearchOrchestrator:
    """Debounced, cached multi-mode search over an in-memory snippet collection.

    The cache and history are injectable so that separate sessions (or
    tests) never share state unless the caller wires them together.

    Example:
        ```python
        async with SearchOrchestrator(snippets, debounce_delay=150) as search:
            search.set_query("vue data")
            search.add_filter("language", "equals", "javascript")
            results = await search.search()
        ```
    """

    def __init__(
        self,
        items: Optional[Iterable[Union[Snippet, Dict[str, Any]]]] = None,
        config: Optional[SearchConfig] = None,
        cache: Optional[CacheManager] = None,
        history: Optional[SearchHistory] = None,
        options: Optional[SearchOptions] = None,
        popular: Optional[PopularQueries] = None,
        clock: Callable[[], float] = time.time,
        **overrides: Any,
    ):
        """Initialize orchestrator.

        Args:
            items: Initial snippet collection (models or mappings)
            config: Full search configuration; built from overrides if None
            cache: Result cache (creates a private one if None)
            history: Query history (creates an unpersisted one if None)
            options: Case and whole-word options
            popular: Popular query tracker
            clock: Epoch-seconds time source for statistics
            **overrides: SearchConfig fields used when config is None
        """
        self.config = config if config is not None else SearchConfig.merged(**overrides)
        self.cache = cache if cache is not None else CacheManager(
            max_size=SEARCH_CACHE_SIZE,
            default_ttl=self.config.cache_ttl,
            cleanup_interval=SEARCH_CACHE_CLEANUP_MS,
        )
        self.history = history if history is not None else SearchHistory(max_size=self.config.history_size)
        self.popular = popular if popular is not None else PopularQueries()
        self.options = options or SearchOptions()
        self._clock = clock

        self._items: List[Snippet] = coerce_snippets(items)
        self._query = ""
        self._mode = SearchMode.FUZZY
        self._sort_by: Union[SortField, str] = SortField.RELEVANCE
        self._sort_order = SortOrder.DESC
        self._filters: List[Filter] = []
        self._next_filter_id = 1

        self._state = SearchState.IDLE
        self._results: List[SearchResultItem] = []
        self._stats: Optional[SearchStats] = None
        self._totals = SearchTotals()
        self._suggestions: List[str] = []
        self._listeners: List[ResultListener] = []

        self._debouncer = Debouncer(self.config.debounce_delay, self._run_scheduled)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> "SearchOrchestrator":
        if self.config.enable_cache:
            self.cache.start_cleanup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel pending work, wait for in-flight searches, stop the cache sweep."""
        await self._debouncer.aclose()
        await self.cache.stop_cleanup()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def is_searching(self) -> bool:
        return self._state in (SearchState.EXECUTING, SearchState.CACHE_MISS_EXECUTING)

    @property
    def query(self) -> str:
        return self._query

    @property
    def mode(self) -> SearchMode:
        return self._mode

    @property
    def sort_by(self) -> Union[SortField, str]:
        return self._sort_by

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    @property
    def items(self) -> List[Snippet]:
        return list(self._items)

    @property
    def active_filters(self) -> List[Filter]:
        return list(self._filters)

    @property
    def has_active_filters(self) -> bool:
        return bool(self._filters)

    @property
    def results(self) -> List[SearchResultItem]:
        """Results of the latest published (non-stale) search."""
        return list(self._results)

    @property
    def stats(self) -> Optional[SearchStats]:
        return self._stats

    @property
    def totals(self) -> SearchTotals:
        return self._totals.model_copy()

    @property
    def popular_queries(self) -> List[PopularQuery]:
        return self.popular.items()

    @property
    def suggestions(self) -> List[str]:
        return list(self._suggestions)

    @property
    def summary(self) -> Optional[Dict[str, Any]]:
        if self._stats is None or not self._stats.query:
            return None
        return {
            "query": self._stats.query,
            "count": self._stats.result_count,
            "time": self._stats.search_time,
            "mode": self._stats.mode.value,
        }

    # ------------------------------------------------------------------
    # Mutations (each schedules a debounced recompute)
    # ------------------------------------------------------------------

    def set_items(self, items: Iterable[Union[Snippet, Dict[str, Any]]]) -> None:
        """Replace the item collection; cached results are invalidated."""
        self._items = coerce_snippets(items)
        self.cache.clear()
        self._schedule()

    def set_query(self, query: str) -> None:
        self._query = query or ""
        if self.config.enable_suggestions:
            self._suggestions = self.get_suggestions()
        self._schedule()

    def set_mode(self, mode: Union[SearchMode, str]) -> None:
        self._mode = parse_mode(mode)
        self._schedule()

    def set_sort_by(self, field: Union[SortField, str], order: Union[SortOrder, str] = SortOrder.DESC) -> None:
        try:
            self._sort_by = SortField(field)
        except ValueError:
            # Kept verbatim; the sort engine leaves results in match order
            self._sort_by = field
        try:
            self._sort_order = SortOrder(order)
        except ValueError:
            logger.warning(f"Unknown sort order '{order}', using descending")
            self._sort_order = SortOrder.DESC
        self._schedule()

    def add_filter(self, field: str, operator: Union[FilterOperator, str], value: Any = None) -> Filter:
        clause = Filter(id=self._next_filter_id, field=field, operator=operator, value=value)
        self._next_filter_id += 1
        self._filters.append(clause)
        self._schedule()
        return clause

    def remove_filter(self, filter_id: int) -> bool:
        remaining = [f for f in self._filters if f.id != filter_id]
        removed = len(remaining) != len(self._filters)
        self._filters = remaining
        if removed:
            self._schedule()
        return removed

    def clear_filters(self) -> None:
        self._filters = []
        self._schedule()

    def clear_search(self) -> None:
        self._query = ""
        self._suggestions = []
        self._filters = []
        self._schedule()

    def update_search_options(self, **changes: Any) -> SearchOptions:
        self.options = SearchOptions(**{**self.options.model_dump(), **changes})
        self._schedule()
        return self.options

    # ------------------------------------------------------------------
    # History and suggestions
    # ------------------------------------------------------------------

    def get_suggestions(self, query: Optional[str] = None) -> List[str]:
        """Autocomplete candidates for query (defaults to the current query)."""
        text = self._query if query is None else query
        return generate_suggestions(
            text.strip(),
            history=self.history.items(),
            popular=self.popular.queries(),
            items=self._items,
        )

    def get_history(self) -> List[str]:
        return self.history.items()

    def clear_history(self) -> None:
        self.history.clear()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: ResultListener) -> Callable[[], None]:
        """Register a listener for published results; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, results: List[SearchResultItem]) -> None:
        self._results = results
        for listener in list(self._listeners):
            try:
                listener(list(results))
            except Exception as e:
                logger.error(f"Search result listener failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _schedule(self) -> None:
        try:
            self._debouncer.schedule()
        except RuntimeError:
            # No running loop: callers drive searches through search()
            return
        self._state = SearchState.DEBOUNCING

    async def flush(self) -> None:
        """Run any pending debounced search now and wait for it to publish."""
        await self._debouncer.flush()

    async def wait_idle(self) -> None:
        """Wait for in-flight debounced searches (pending timers are not awaited)."""
        await self._debouncer.wait()

    async def _run_scheduled(self, generation: int) -> None:
        results = await self._execute()
        if self._debouncer.is_current(generation):
            self._publish(results)
        else:
            logger.debug(f"Dropping stale search results (generation {generation} < {self._debouncer.generation})")

    async def search(self) -> List[SearchResultItem]:
        """Run the search pipeline now and return its results.

        Supersedes any pending debounced search. Never raises.
        """
        generation = self._debouncer.advance()
        results = await self._execute()
        if self._debouncer.is_current(generation):
            self._publish(results)
        return list(results)

    async def _execute(self) -> List[SearchResultItem]:
        query = self._query.strip()

        if not query and not self._filters:
            self._state = SearchState.COMPLETED
            return MatchStrategy.passthrough(self._items)

        started = time.perf_counter()
        self._state = SearchState.EXECUTING
        results: List[SearchResultItem] = []

        try:
            key = make_search_key(query, self._mode, self._sort_by, self._sort_order, self._filters, self.options)

            cached = self.cache.get(key) if self.config.enable_cache else None
            if cached is not None:
                self._state = SearchState.CACHE_HIT
                logger.debug(f"Search cache hit for '{query}' ({len(cached)} results)")
                results = list(cached)
            else:
                self._state = SearchState.CACHE_MISS_EXECUTING
                results = await self._run_pipeline(query)
                if self.config.enable_cache:
                    self.cache.set(key, list(results), ttl=self.config.cache_ttl)
        except Exception as e:
            logger.error(f"Search failed for query '{query}': {e}", exc_info=True)
            results = []
        finally:
            self._state = SearchState.COMPLETED

        elapsed_ms = (time.perf_counter() - started) * 1000
        self._record(query, len(results), elapsed_ms)
        return results

    async def _run_pipeline(self, query: str) -> List[SearchResultItem]:
        strategy = create_strategy(self._mode, self.config, self.options)
        results = await strategy.search_safe(self._items, query)
        results = apply_filters(results, self._filters)
        results = sort_results(results, self._sort_by, self._sort_order)
        # Truncate only after the global sort
        return results[: self.config.max_results]

    def _record(self, query: str, result_count: int, elapsed_ms: float) -> None:
        now = self._clock()
        self._stats = SearchStats(
            query=query,
            mode=self._mode,
            result_count=result_count,
            search_time=round(elapsed_ms, 3),
            timestamp=now,
        )

        total = self._totals.total_searches + 1
        self._totals = SearchTotals(
            total_searches=total,
            average_result_count=self._totals.average_result_count
            + (result_count - self._totals.average_result_count) / total,
        )

        if not query:
            return
        try:
            if self.config.enable_history:
                self.history.add(query)
        except Exception as e:
            logger.error(f"Failed to record search history for '{query}': {e}", exc_info=True)
        self.popular.record(query, result_count, elapsed_ms)
