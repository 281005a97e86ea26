"""Base match strategy interface for multi-mode snippet search.

This module defines the MatchStrategy ABC shared by the exact, regex, fuzzy
and semantic strategies, along with the strategy exceptions.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
import logging

from snipsearch.config import SearchConfig
from snipsearch.core.schemas import (
    SearchMode,
    SearchOptions,
    SearchResultItem,
    Snippet,
    to_result_item,
)


# ============================================================================
# Abstract Base Class
# ============================================================================

class MatchStrategy(ABC):
    """Abstract base class for match strategies.

    Every strategy consumes the full item collection plus a trimmed query
    and returns new SearchResultItem objects; the input snippets are never
    modified. Scores are only comparable within one strategy.

    Attributes:
        config: Session search configuration
        options: Case and whole-word matching options
        logger: Logger instance for this strategy
    """

    def __init__(self, config: SearchConfig, options: Optional[SearchOptions] = None):
        """Initialize strategy with configuration and logging."""
        self.config = config
        self.options = options or SearchOptions()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def mode(self) -> SearchMode:
        """Search mode implemented by this strategy."""
        raise NotImplementedError

    @property
    def name(self) -> str:
        return self.mode.value

    @abstractmethod
    async def search(self, items: Sequence[Snippet], query: str) -> List[SearchResultItem]:
        """Match items against query.

        Args:
            items: Full item collection (read-only)
            query: Caller-trimmed query; empty means pass-through

        Returns:
            Scored result items in input order (unsorted)

        Raises:
            StrategyError: If matching fails unexpectedly
        """
        raise NotImplementedError

    async def search_safe(self, items: Sequence[Snippet], query: str) -> List[SearchResultItem]:
        """Run search() and degrade any failure to an empty result list.

        Use this in orchestration code where a search must always complete.
        """
        try:
            self.logger.debug(f"Searching with {self.name} strategy: query='{query[:50]}', items={len(items)}")
            results = await self.search(items, query)
            self.logger.debug(f"{self.name} strategy matched {len(results)} items")
            return results
        except Exception as e:
            self.logger.error(f"Error in {self.name} strategy: {e}", exc_info=True)
            return []

    @staticmethod
    def passthrough(items: Sequence[Snippet]) -> List[SearchResultItem]:
        """Wrap items unchanged, used when there is nothing to match."""
        return [to_result_item(item) for item in items]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(mode='{self.name}')"


# ============================================================================
# Exceptions
# ============================================================================

class StrategyError(Exception):
    """Base exception for match strategy errors."""

    def __init__(self, message: str, strategy_name: Optional[str] = None):
        """Initialize strategy error.

        Args:
            message: Error message
            strategy_name: Name of the strategy that failed (optional)
        """
        self.strategy_name = strategy_name
        super().__init__(message)


class InvalidPatternError(StrategyError):
    """Raised when a regex query cannot be compiled."""
    pass
