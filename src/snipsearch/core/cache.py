"""Two-tier result cache with TTL expiry and LRU eviction.

Memory tier:
- Bounded by max_size; the least recently accessed entry is evicted before
  inserting a new key into a full tier
- Entries carry an absolute expiry and are evicted on read once stale

Persisted tier (optional):
- Entries written with persistent=True are mirrored into a KeyValueStore
  under the "cache:" prefix and survive process restarts
- Reads that miss the memory tier fall through to it and promote the entry

A background asyncio task sweeps expired entries from both tiers on a fixed
interval. Sweeps iterate over snapshots, so a concurrent get/set from the
same loop never sees a half-mutated dictionary.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from snipsearch.core.schemas import Filter, SearchMode, SearchOptions, SortField, SortOrder
from snipsearch.core.storage import KeyValueStore

logger = logging.getLogger(__name__)

PERSISTENT_PREFIX = "cache:"
SEARCH_CACHE_TTL_MS = 30_000


class CacheError(Exception):
    """Raised when a cache operation cannot be completed."""
    pass


@dataclass
class CacheEntry:
    """One cached value with absolute expiry (epoch seconds)."""
    key: str
    value: Any
    expires_at: float
    created_at: float
    last_access: float

    def is_fresh(self, now: float) -> bool:
        return self.expires_at > now

    def to_record(self) -> Dict[str, Any]:
        return {"value": self.value, "expires_at": self.expires_at, "created_at": self.created_at}


class CacheManager:
    """In-memory cache with an optional persisted tier.

    TTLs are expressed in milliseconds; the clock returns epoch seconds.

    Attributes:
        max_size: Memory tier capacity
        default_ttl: TTL used when set() receives none (ms)
        cleanup_interval: Period of the background sweep (ms)
    """

    def __init__(
        self,
        max_size: int = 100,
        default_ttl: int = 5 * 60 * 1000,
        cleanup_interval: int = 60 * 1000,
        store: Optional[KeyValueStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        if max_size < 1:
            raise CacheError("max_size must be at least 1")

        self.max_size = max_size
        self.default_ttl = default_ttl
        self.cleanup_interval = cleanup_interval
        self._store = store
        self._clock = clock

        self._memory: Dict[str, CacheEntry] = {}
        self._persistent: Dict[str, CacheEntry] = {}

        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "deletes": 0,
            "evictions": 0,
            "cleanups": 0,
        }

        self._cleanup_task: Optional[asyncio.Task] = None
        self._shutdown_event: Optional[asyncio.Event] = None

        if self._store is not None:
            self.load_persistent()

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, ttl: Optional[int] = None, persistent: bool = False) -> "CacheManager":
        """Store value under key for ttl milliseconds."""
        now = self._clock()
        ttl = self.default_ttl if ttl is None else ttl

        if key not in self._memory and len(self._memory) >= self.max_size:
            self.evict_lru()

        entry = CacheEntry(key=key, value=value, expires_at=now + ttl / 1000, created_at=now, last_access=now)
        self._memory[key] = entry

        if persistent:
            self._persistent[key] = entry
            self._write_store(entry)

        self._stats["sets"] += 1
        return self

    def get(self, key: str, default: Any = None) -> Any:
        """Return the fresh value for key, or default."""
        now = self._clock()

        entry = self._memory.get(key)
        if entry is not None:
            if entry.is_fresh(now):
                entry.last_access = now
                self._stats["hits"] += 1
                return entry.value
            self.delete(key)

        stored = self._persistent.get(key)
        if stored is not None:
            if stored.is_fresh(now):
                if len(self._memory) >= self.max_size:
                    self.evict_lru()
                stored.last_access = now
                self._memory[key] = stored
                self._stats["hits"] += 1
                return stored.value
            self._drop_persistent(key)

        self._stats["misses"] += 1
        return default

    def has(self, key: str) -> bool:
        """Check for a fresh entry without touching hit statistics."""
        now = self._clock()

        entry = self._memory.get(key)
        if entry is not None:
            if entry.is_fresh(now):
                return True
            self.delete(key)

        stored = self._persistent.get(key)
        if stored is not None:
            if stored.is_fresh(now):
                return True
            self._drop_persistent(key)

        return False

    def delete(self, key: str) -> bool:
        """Remove key from both tiers."""
        deleted = self._memory.pop(key, None) is not None
        if key in self._persistent:
            self._drop_persistent(key)
            deleted = True

        if deleted:
            self._stats["deletes"] += 1
        return deleted

    def clear(self) -> None:
        """Remove every entry from both tiers, including stored ones."""
        self._memory.clear()
        self._persistent.clear()
        if self._store is not None:
            for store_key, _ in list(self._store.items(PERSISTENT_PREFIX)):
                self._store.delete(store_key)

    def evict_lru(self) -> Optional[str]:
        """Evict the least recently accessed memory entry.

        The persisted copy, if any, is kept so it can be promoted again.
        """
        if not self._memory:
            return None
        oldest_key = min(self._memory.values(), key=lambda e: e.last_access).key
        del self._memory[oldest_key]
        self._stats["evictions"] += 1
        logger.debug(f"Evicted LRU cache entry {oldest_key}")
        return oldest_key

    def cleanup(self) -> int:
        """Purge expired entries from both tiers. Returns the number removed."""
        now = self._clock()
        removed = 0

        for key, entry in list(self._memory.items()):
            if not entry.is_fresh(now):
                self._memory.pop(key, None)
                removed += 1

        for key, entry in list(self._persistent.items()):
            if not entry.is_fresh(now):
                self._drop_persistent(key)
                removed += 1

        self._stats["cleanups"] += 1
        if removed:
            logger.debug(f"Cache cleanup removed {removed} expired entries")
        return removed

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    def start_cleanup(self) -> asyncio.Task:
        """Start the periodic sweep on the running event loop."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return self._cleanup_task
        self._shutdown_event = asyncio.Event()
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        return self._cleanup_task

    async def stop_cleanup(self) -> None:
        """Stop the periodic sweep and wait for it to exit."""
        if self._cleanup_task is None:
            return
        if self._shutdown_event is not None:
            self._shutdown_event.set()
        try:
            await asyncio.wait_for(self._cleanup_task, timeout=5.0)
        except asyncio.TimeoutError:
            self._cleanup_task.cancel()
        self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while not self._shutdown_event.is_set():
            try:
                self.cleanup()
            except Exception as e:
                logger.error(f"Error in cache cleanup: {e}", exc_info=True)

            try:
                await asyncio.wait_for(
                    self._shutdown_event.wait(),
                    timeout=self.cleanup_interval / 1000,
                )
                break  # Shutdown requested
            except asyncio.TimeoutError:
                continue

    # ------------------------------------------------------------------
    # Persisted tier
    # ------------------------------------------------------------------

    def load_persistent(self) -> int:
        """Load fresh entries from the store; stale ones are deleted there."""
        if self._store is None:
            return 0

        now = self._clock()
        loaded = 0
        for store_key, record in list(self._store.items(PERSISTENT_PREFIX)):
            key = store_key[len(PERSISTENT_PREFIX):]
            try:
                entry = CacheEntry(
                    key=key,
                    value=record["value"],
                    expires_at=float(record["expires_at"]),
                    created_at=float(record.get("created_at", now)),
                    last_access=now,
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Discarding malformed persisted cache entry {key}: {e}")
                self._store.delete(store_key)
                continue

            if entry.is_fresh(now):
                self._persistent[key] = entry
                loaded += 1
            else:
                self._store.delete(store_key)

        logger.debug(f"Loaded {loaded} persisted cache entries")
        return loaded

    def save_persistent(self) -> int:
        """Write every fresh persisted entry to the store."""
        if self._store is None:
            return 0
        now = self._clock()
        saved = 0
        for entry in list(self._persistent.values()):
            if entry.is_fresh(now) and self._write_store(entry):
                saved += 1
        return saved

    def _write_store(self, entry: CacheEntry) -> bool:
        if self._store is None:
            return False
        try:
            self._store.set(PERSISTENT_PREFIX + entry.key, entry.to_record())
            return True
        except (TypeError, ValueError) as e:
            # Non-JSON values stay memory-only
            logger.warning(f"Failed to persist cache entry {entry.key}: {e}")
            return False

    def _drop_persistent(self, key: str) -> None:
        self._persistent.pop(key, None)
        if self._store is not None:
            self._store.delete(PERSISTENT_PREFIX + key)

    # ------------------------------------------------------------------
    # Introspection and bulk helpers
    # ------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        lookups = self._stats["hits"] + self._stats["misses"]
        hit_rate = round(self._stats["hits"] / lookups * 100, 2) if lookups else 0.0
        return {
            **self._stats,
            "hit_rate": hit_rate,
            "memory_size": len(self._memory),
            "persistent_size": len(self._persistent),
            "max_size": self.max_size,
        }

    def keys(self) -> List[str]:
        return list(dict.fromkeys([*self._memory, *self._persistent]))

    def size(self) -> int:
        return len(self.keys())

    def mset(self, entries: Dict[str, Any], ttl: Optional[int] = None, persistent: bool = False) -> None:
        for key, value in entries.items():
            self.set(key, value, ttl, persistent)

    def mget(self, keys: Iterable[str]) -> Dict[str, Any]:
        return {key: self.get(key) for key in keys}

    def mdel(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.delete(key)

    def set_if_not_exists(self, key: str, value: Any, ttl: Optional[int] = None, persistent: bool = False) -> bool:
        if self.has(key):
            return False
        self.set(key, value, ttl, persistent)
        return True

    def expire(self, key: str, ttl: int) -> bool:
        """Reset key's expiry to ttl milliseconds from now."""
        if not self.has(key):
            return False
        expires_at = self._clock() + ttl / 1000
        for tier in (self._memory, self._persistent):
            if key in tier:
                tier[key].expires_at = expires_at
        if key in self._persistent:
            self._write_store(self._persistent[key])
        return True

    def ttl(self, key: str) -> int:
        """Remaining lifetime in milliseconds, -1 if key is unknown."""
        entry = self._memory.get(key) or self._persistent.get(key)
        if entry is None:
            return -1
        return max(0, int((entry.expires_at - self._clock()) * 1000))


def make_search_key(
    query: str,
    mode: SearchMode,
    sort_by: str,
    order: str,
    filters: Sequence[Filter],
    options: Optional[SearchOptions] = None,
) -> str:
    """Build the deterministic cache key for one search configuration.

    Filter ids are left out: two clause lists that differ only in handles
    select the same items. Only fuzzy and semantic queries are folded to
    lowercase single-spaced form; exact and regex queries match literally
    (whitespace runs and ``\\d`` vs ``\\D`` are significant) and are kept as is.
    """
    options = options or SearchOptions()
    mode_value = mode.value if isinstance(mode, SearchMode) else str(mode)

    normalized = query.strip()
    if mode_value in (SearchMode.FUZZY.value, SearchMode.SEMANTIC.value):
        normalized = " ".join(normalized.split())
        if not options.case_sensitive:
            normalized = normalized.lower()

    sort_value = sort_by.value if isinstance(sort_by, SortField) else str(sort_by)
    order_value = order.value if isinstance(order, SortOrder) else str(order)

    clauses = [
        {"field": f.field, "operator": f.operator, "value": f.value}
        for f in filters
    ]
    filters_json = json.dumps(clauses, sort_keys=True, default=str)
    flags = f"cs={int(options.case_sensitive)},ww={int(options.whole_word)}"

    return f"search:{normalized}:{mode_value}:{sort_value}:{order_value}:{flags}:{filters_json}"
