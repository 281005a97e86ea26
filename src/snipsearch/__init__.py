"""snipsearch: multi-mode search and ranking for personal code snippets."""

from snipsearch.config import SearchConfig, Settings
from snipsearch.core import (
    Filter,
    FilterOperator,
    SearchMode,
    SearchOrchestrator,
    SearchResultItem,
    Snippet,
    SortField,
    SortOrder,
)

__version__ = "0.1.0"

__all__ = [
    "SearchConfig",
    "Settings",
    "Filter",
    "FilterOperator",
    "SearchMode",
    "SearchOrchestrator",
    "SearchResultItem",
    "Snippet",
    "SortField",
    "SortOrder",
]
