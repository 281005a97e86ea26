"""Regular expression match strategy."""

import re
from typing import Dict, List, Pattern, Sequence

from snipsearch.core.fields import get_field_value
from snipsearch.core.schemas import SearchMode, SearchResultItem, Snippet, to_result_item
from snipsearch.core.strategies.base import InvalidPatternError, MatchStrategy
from snipsearch.core.text import highlight

TITLE_MATCH_SCORE = 1.0
FIELD_MATCH_SCORE = 0.5


class RegexStrategy(MatchStrategy):
    """Treats the query as a Python regular expression.

    An invalid pattern is an input problem, not a failure: it is logged as a
    warning and yields no results.
    """

    @property
    def mode(self) -> SearchMode:
        return SearchMode.REGEX

    def compile(self, query: str) -> Pattern[str]:
        """Compile query with the session's case sensitivity.

        Raises:
            InvalidPatternError: If query is not a valid regular expression
        """
        flags = 0 if self.options.case_sensitive else re.IGNORECASE
        try:
            return re.compile(query, flags)
        except re.error as e:
            raise InvalidPatternError(
                f"Invalid regex pattern '{query}': {e}",
                strategy_name=self.name
            ) from e

    async def search(self, items: Sequence[Snippet], query: str) -> List[SearchResultItem]:
        if not query:
            return self.passthrough(items)

        try:
            pattern = self.compile(query)
        except InvalidPatternError as e:
            self.logger.warning(str(e))
            return []

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
                search_score=self._score(item, pattern),
                search_highlights=highlights,
                matched_fields=matched,
            ))
        return results

    @staticmethod
    def _score(item: Snippet, pattern: Pattern[str]) -> float:
        return TITLE_MATCH_SCORE if pattern.search(item.title or "") else FIELD_MATCH_SCORE
