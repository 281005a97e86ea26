"""Exact substring match strategy."""

import re
from typing import Dict, List, Pattern, Sequence

from snipsearch.core.fields import get_field_value
from snipsearch.core.schemas import SearchMode, SearchResultItem, Snippet, to_result_item
from snipsearch.core.strategies.base import MatchStrategy
from snipsearch.core.text import escape_regex, highlight

TITLE_MATCH_SCORE = 1.0
FIELD_MATCH_SCORE = 0.5


class ExactStrategy(MatchStrategy):
    """Literal substring containment over the configured search fields.

    Case-insensitive unless ``case_sensitive`` is set; ``whole_word`` requires
    the query to sit between word boundaries. Scoring is coarse: 1.0 when the
    title contains the query, 0.5 for a match anywhere else.
    """

    @property
    def mode(self) -> SearchMode:
        return SearchMode.EXACT

    async def search(self, items: Sequence[Snippet], query: str) -> List[SearchResultItem]:
        if not query:
            return self.passthrough(items)

        pattern = self.compile(query)

        results: List[SearchResultItem] = []
        for item in items:
            values = {field: get_field_value(item, field) for field in self.config.search_fields}
            matched = [field for field, value in values.items() if pattern.search(value)]
            if not matched:
                continue

            highlights: Dict[str, str] = {}
            if self.config.enable_highlight:
                highlights = {field: highlight(values[field], pattern) for field in matched}

            results.append(to_result_item(
                item,
                search_score=self._score(item, query),
                search_highlights=highlights,
                matched_fields=matched,
            ))
        return results

    def compile(self, query: str) -> Pattern[str]:
        """Literal pattern for query honoring case_sensitive and whole_word."""
        source = escape_regex(query)
        if self.options.whole_word:
            source = rf"\b{source}\b"
        flags = 0 if self.options.case_sensitive else re.IGNORECASE
        return re.compile(source, flags)

    @staticmethod
    def _score(item: Snippet, query: str) -> float:
        title_match = query.lower() in (item.title or "").lower()
        return TITLE_MATCH_SCORE if title_match else FIELD_MATCH_SCORE

