"""Match strategies for multi-mode snippet search.

This module provides the interchangeable matching algorithms:
- Exact substring search
- Regular expression search
- Fuzzy weighted search (default)
- Semantic search (synonym expansion over fuzzy)
"""

import logging
from typing import Dict, Optional, Type, Union

from snipsearch.config import SearchConfig
from snipsearch.core.schemas import SearchMode, SearchOptions

from .base import (
    MatchStrategy,
    StrategyError,
    InvalidPatternError,
)
from .exact import ExactStrategy
from .regex import RegexStrategy
from .fuzzy import FuzzyStrategy
from .semantic import SemanticStrategy, SYNONYMS

logger = logging.getLogger(__name__)

STRATEGIES: Dict[SearchMode, Type[MatchStrategy]] = {
    SearchMode.EXACT: ExactStrategy,
    SearchMode.REGEX: RegexStrategy,
    SearchMode.FUZZY: FuzzyStrategy,
    SearchMode.SEMANTIC: SemanticStrategy,
}


def parse_mode(mode: Union[SearchMode, str, None]) -> SearchMode:
    """Resolve a mode value, falling back to fuzzy for unknown modes."""
    if isinstance(mode, SearchMode):
        return mode
    if mode is None:
        return SearchMode.FUZZY
    try:
        return SearchMode(mode)
    except ValueError:
        logger.warning(f"Unknown search mode '{mode}', falling back to fuzzy")
        return SearchMode.FUZZY


def create_strategy(
    mode: Union[SearchMode, str, None],
    config: SearchConfig,
    options: Optional[SearchOptions] = None,
) -> MatchStrategy:
    """Instantiate the strategy registered for mode."""
    return STRATEGIES[parse_mode(mode)](config, options)


__all__ = [
    # Base classes
    "MatchStrategy",
    # Exceptions
    "StrategyError",
    "InvalidPatternError",
    # Implementations
    "ExactStrategy",
    "RegexStrategy",
    "FuzzyStrategy",
    "SemanticStrategy",
    "SYNONYMS",
    # Factory
    "STRATEGIES",
    "parse_mode",
    "create_strategy",
]
