"""Result ordering."""

import locale
import logging
from typing import Any, Callable, Dict, List, Sequence, TypeVar, Union

from snipsearch.core.schemas import SearchResultItem, SortField, SortOrder

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=SearchResultItem)


def _date_key(item: SearchResultItem) -> float:
    return item.updated_at or item.created_at or 0


def _title_key(item: SearchResultItem) -> str:
    # strxfrm rejects embedded NUL characters
    return locale.strxfrm((item.title or "").replace("\x00", "").casefold())


SORT_KEYS: Dict[SortField, Callable[[SearchResultItem], Any]] = {
    SortField.RELEVANCE: lambda item: item.search_score or 0.0,
    SortField.DATE: _date_key,
    SortField.TITLE: _title_key,
    SortField.SIZE: lambda item: len(item.code or ""),
    SortField.USAGE: lambda item: item.usage_count or 0,
}


def sort_results(
    results: Sequence[T],
    sort_by: Union[SortField, str] = SortField.RELEVANCE,
    order: Union[SortOrder, str] = SortOrder.DESC,
) -> List[T]:
    """Return results ordered by sort_by.

    The sort is stable in both directions, so full ties keep their input
    order. An unknown sort key leaves the order unchanged.
    """
    try:
        field = SortField(sort_by)
    except ValueError:
        logger.warning(f"Unknown sort key '{sort_by}', leaving results unsorted")
        return list(results)

    try:
        descending = SortOrder(order) == SortOrder.DESC
    except ValueError:
        logger.warning(f"Unknown sort order '{order}', using descending")
        descending = True

    return sorted(results, key=SORT_KEYS[field], reverse=descending)
