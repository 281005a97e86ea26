"""Search and ranking engine for snippet collections.

This package provides:
- Match strategies (exact, regex, fuzzy, semantic)
- Filter and sort engines
- A two-tier TTL/LRU result cache
- Search history and autocomplete suggestions
- The debounced SearchOrchestrator tying them together
"""

from .schemas import (
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
)
from .cache import CacheManager, CacheError, make_search_key
from .filters import apply_filters, evaluate_filter
from .sorting import sort_results
from .history import PopularQueries, SearchHistory, generate_suggestions
from .storage import KeyValueStore, MemoryKeyValueStore, SqlKeyValueStore
from .strategies import create_strategy
from .search import SearchOrchestrator

__all__ = [
    # Data model
    "Filter",
    "FilterOperator",
    "PopularQuery",
    "SearchMode",
    "SearchOptions",
    "SearchResultItem",
    "SearchState",
    "SearchStats",
    "SearchTotals",
    "Snippet",
    "SortField",
    "SortOrder",
    # Engines
    "CacheManager",
    "CacheError",
    "make_search_key",
    "apply_filters",
    "evaluate_filter",
    "sort_results",
    "create_strategy",
    # History
    "PopularQueries",
    "SearchHistory",
    "generate_suggestions",
    # Storage
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqlKeyValueStore",
    # Orchestration
    "SearchOrchestrator",
]
