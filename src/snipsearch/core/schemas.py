"""
Pydantic schemas for the snippet search engine.

This module defines the value objects that flow through the engine: the
read-only snippet shape supplied by the item store, the derived result item
produced per search, structured filters, and the statistics snapshots.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Enums

class SearchMode(str, Enum):
    """Matching algorithm used by a search."""
    EXACT = "exact"
    REGEX = "regex"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"  # synonym expansion over fuzzy, not embeddings


class SortField(str, Enum):
    """Result ordering key."""
    RELEVANCE = "relevance"
    DATE = "date"
    TITLE = "title"
    SIZE = "size"
    USAGE = "usage"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FilterOperator(str, Enum):
    """Operators understood by the filter engine."""
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    BETWEEN = "between"
    IN = "in"
    NOT_IN = "notIn"
    EXISTS = "exists"
    NOT_EXISTS = "notExists"


class SearchState(str, Enum):
    """Lifecycle of one orchestrated search."""
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    EXECUTING = "executing"
    CACHE_HIT = "cache_hit"
    CACHE_MISS_EXECUTING = "cache_miss_executing"
    COMPLETED = "completed"


# Value Objects

class Snippet(BaseModel):
    """A code snippet owned by the external item store.

    Unknown keys are preserved so that dotted field paths can reach
    caller-specific data (e.g. ``meta.author``).
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Union[str, int] = Field(..., description="Unique identifier")
    title: str = Field(..., description="Snippet title")
    description: Optional[str] = Field(None, description="Free-text description")
    language: str = Field("", description="Programming language")
    code: str = Field("", description="Snippet source code")
    tags: List[str] = Field(default_factory=list, description="Tag labels")
    folder_id: Optional[str] = Field(None, description="Containing folder")
    created_at: float = Field(0, description="Creation time (epoch seconds)")
    updated_at: float = Field(0, description="Last update time (epoch seconds)")
    usage_count: int = Field(0, description="Times the snippet was used")
    is_favorite: bool = Field(False, alias="isFavorite", description="Starred by the user")


class SearchResultItem(Snippet):
    """A snippet plus the ephemeral fields derived by one search invocation."""

    search_score: float = Field(0.0, description="Strategy-relative relevance (higher is better)")
    search_highlights: Dict[str, str] = Field(
        default_factory=dict, description="Field name to <mark>-wrapped text"
    )
    matched_fields: List[str] = Field(default_factory=list, description="Fields that matched")


class Filter(BaseModel):
    """One structured filter clause.

    ``operator`` is stored as its string value; unknown operators are kept
    so the filter engine can treat them as pass-through.
    """

    id: int = Field(..., description="Caller-visible handle for removal")
    field: str = Field(..., description="Field name or dotted path")
    operator: str = Field(..., description="One of FilterOperator values")
    value: Any = Field(None, description="Operand; shape depends on operator")

    @field_validator("operator", mode="before")
    @classmethod
    def _operator_value(cls, value: Any) -> Any:
        if isinstance(value, FilterOperator):
            return value.value
        return value


class SearchOptions(BaseModel):
    """Mutable per-session matching options."""

    case_sensitive: bool = False
    whole_word: bool = False


class SearchStats(BaseModel):
    """Snapshot of the most recent search invocation."""

    query: str
    mode: SearchMode
    result_count: int
    search_time: float = Field(..., description="Milliseconds")
    timestamp: float = Field(..., description="Epoch seconds")


class PopularQuery(BaseModel):
    query: str
    count: int = 1
    last_used: float
    average_results: float = 0.0
    average_time: float = 0.0


class SearchTotals(BaseModel):
    total_searches: int = 0
    average_result_count: float = 0.0


# Helpers

def coerce_snippet(item: Union[Snippet, Dict[str, Any]]) -> Snippet:
    """Validate a raw mapping into a Snippet; models pass through untouched."""
    if isinstance(item, Snippet):
        return item
    return Snippet.model_validate(item)


def coerce_snippets(items: Optional[Iterable[Union[Snippet, Dict[str, Any]]]]) -> List[Snippet]:
    if not items:
        return []
    return [coerce_snippet(item) for item in items]


def to_result_item(item: Snippet, **derived: Any) -> SearchResultItem:
    """Copy a snippet into a new SearchResultItem with derived fields set.

    The source object is never modified.
    """
    data = item.model_dump()
    data.update(derived)
    return SearchResultItem.model_validate(data)
