"""
snipsearch Configuration

This module manages engine configuration via environment variables and
~/.snipsearch/.env file.

Configuration is loaded from:
1. Environment variables (prefixed with SNIPSEARCH_)
2. ~/.snipsearch/.env file

Key settings:
- SNIPSEARCH_DATABASE_URL: SQLite database backing search history and the
  persisted cache tier
- SNIPSEARCH_FUZZY_THRESHOLD: Minimum aggregate score for fuzzy/semantic hits
- SNIPSEARCH_DEBOUNCE_DELAY_MS: Quiet window before a scheduled search runs
"""

import logging
from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_FIELDS = ["title", "description", "code", "tags"]


class SearchConfig(BaseModel):
    """Per-session search configuration.

    Immutable once constructed. Build one with ``SearchConfig.merged(**overrides)``
    to layer caller overrides over the defaults.
    """

    model_config = ConfigDict(frozen=True)

    search_fields: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SEARCH_FIELDS),
        description="Fields inspected by every match strategy"
    )
    fuzzy_threshold: float = Field(
        default=0.6, ge=0.0, le=1.0,
        description="Minimum weighted score accepted in fuzzy and semantic modes"
    )
    max_results: int = Field(default=100, ge=1, description="Results kept after sorting")
    debounce_delay: int = Field(default=300, ge=0, description="Debounce window in milliseconds")
    enable_cache: bool = Field(default=True, description="Memoize full search invocations")
    enable_highlight: bool = Field(default=True, description="Emit <mark> highlights")
    enable_suggestions: bool = Field(default=True, description="Compute autocomplete suggestions")
    enable_history: bool = Field(default=True, description="Record completed queries")
    history_size: int = Field(default=50, ge=1, description="Maximum remembered queries")
    cache_ttl: int = Field(default=30_000, ge=0, description="Search result TTL in milliseconds")

    @classmethod
    def merged(cls, **overrides) -> "SearchConfig":
        """Create a config from defaults plus any non-None overrides."""
        return cls(**{k: v for k, v in overrides.items() if v is not None})


class Settings(BaseSettings):
    """snipsearch configuration settings."""

    app_name: str = "Snippet Search"

    # Persistence for history and the persisted cache tier
    database_url: str = f"sqlite:///{Path.home()}/.snipsearch/snipsearch.db"

    # Search defaults
    fuzzy_threshold: float = 0.6
    max_results: int = 100
    debounce_delay_ms: int = 300
    history_size: int = 50

    # Result cache
    cache_max_size: int = 50
    cache_ttl_ms: int = 30_000
    cache_cleanup_interval_ms: int = 60_000

    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="SNIPSEARCH_",
        env_file=Path.home() / ".snipsearch" / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def get_db_path(self) -> Path:
        """Get the SQLite database file path."""
        if self.database_url.startswith("sqlite:///"):
            return Path(self.database_url.replace("sqlite:///", ""))
        return Path.home() / ".snipsearch" / "snipsearch.db"

    def ensure_db_dir(self) -> None:
        """Create the database parent directory for file-backed SQLite URLs."""
        if ":memory:" in self.database_url or not self.database_url.startswith("sqlite:///"):
            return
        db_path = self.get_db_path()
        if not db_path.parent.exists():
            logger.debug(f"Creating database directory {db_path.parent}")
            db_path.parent.mkdir(parents=True, exist_ok=True)

    def search_config(self, **overrides) -> SearchConfig:
        """Build a SearchConfig seeded from these settings."""
        base = {
            "fuzzy_threshold": self.fuzzy_threshold,
            "max_results": self.max_results,
            "debounce_delay": self.debounce_delay_ms,
            "history_size": self.history_size,
            "cache_ttl": self.cache_ttl_ms,
        }
        base.update({k: v for k, v in overrides.items() if v is not None})
        return SearchConfig(**base)
