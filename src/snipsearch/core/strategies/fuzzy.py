"""Weighted fuzzy match strategy.

Each configured field is scored with calculate_fuzzy_score(); fields that
score above zero are combined into a weight-normalized aggregate and the item
is kept only when the aggregate reaches the configured fuzzy threshold.
"""

from typing import Dict, List, Sequence

from snipsearch.core.fields import get_field_value
from snipsearch.core.schemas import SearchMode, SearchResultItem, Snippet, to_result_item
from snipsearch.core.scoring import (
    FieldScore,
    calculate_fuzzy_score,
    get_field_weight,
    weighted_aggregate,
)
from snipsearch.core.strategies.base import MatchStrategy
from snipsearch.core.text import highlight_terms, tokenize


class FuzzyStrategy(MatchStrategy):
    """Default strategy: partial and literal term matching with field weights."""

    @property
    def mode(self) -> SearchMode:
        return SearchMode.FUZZY

    async def search(self, items: Sequence[Snippet], query: str) -> List[SearchResultItem]:
        terms = tokenize(query)
        if not terms:
            return self.passthrough(items)

        threshold = self.config.fuzzy_threshold
        results: List[SearchResultItem] = []

        for item in items:
            scores: List[FieldScore] = []
            highlights: Dict[str, str] = {}

            for field in self.config.search_fields:
                value = get_field_value(item, field)
                field_score = calculate_fuzzy_score(value, terms)
                if field_score <= 0:
                    continue

                scores.append(FieldScore(field=field, score=field_score, weight=get_field_weight(field)))
                if self.config.enable_highlight:
                    highlights[field] = highlight_terms(value, terms)

            if not scores:
                continue

            aggregate = weighted_aggregate(scores)
            if aggregate < threshold:
                continue

            results.append(to_result_item(
                item,
                search_score=aggregate,
                search_highlights=highlights,
                matched_fields=[s.field for s in scores],
            ))

        return results
