"""Synonym-expanded fuzzy search.

This is not embedding search. The query is expanded with entries from a
small static synonym table and handed to the fuzzy strategy. No network or
model call is involved; get_synonyms() is async so a real lookup service can
replace the table without changing callers.
"""

from typing import Dict, List, Optional, Sequence

from snipsearch.config import SearchConfig
from snipsearch.core.schemas import SearchMode, SearchOptions, SearchResultItem, Snippet
from snipsearch.core.strategies.base import MatchStrategy
from snipsearch.core.strategies.fuzzy import FuzzyStrategy

SYNONYMS: Dict[str, List[str]] = {
    "function": ["method", "procedure", "routine"],
    "variable": ["var", "field", "property"],
    "class": ["type", "object", "entity"],
    "error": ["exception", "bug", "issue"],
    "data": ["information", "content", "value"],
}


class SemanticStrategy(MatchStrategy):
    """Fuzzy search over the query plus its synonyms."""

    def __init__(
        self,
        config: SearchConfig,
        options: Optional[SearchOptions] = None,
        synonyms: Optional[Dict[str, List[str]]] = None,
    ):
        super().__init__(config, options)
        self.synonyms = synonyms if synonyms is not None else SYNONYMS
        self._fuzzy = FuzzyStrategy(config, self.options)

    @property
    def mode(self) -> SearchMode:
        return SearchMode.SEMANTIC

    async def get_synonyms(self, query: str) -> List[str]:
        """Collect synonyms for every lower-cased word of query, in order."""
        found: List[str] = []
        for word in query.lower().split():
            found.extend(self.synonyms.get(word, []))
        return found

    async def expand_query(self, query: str) -> str:
        synonyms = await self.get_synonyms(query)
        return " ".join([query, *synonyms])

    async def search(self, items: Sequence[Snippet], query: str) -> List[SearchResultItem]:
        if not query:
            return self.passthrough(items)

        expanded = await self.expand_query(query)
        if expanded != query:
            self.logger.debug(f"Expanded query '{query}' to '{expanded}'")
        return await self._fuzzy.search(items, expanded)
