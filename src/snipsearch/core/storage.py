"""Persistent key-value store boundary.

The history tracker and the persisted cache tier talk to storage only through
the ``KeyValueStore`` protocol. Two adapters ship with the package: an
in-process dictionary store and a SQLAlchemy-backed store.
"""

import copy
import json
from typing import Any, Dict, Iterator, Optional, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from snipsearch.core.models import KeyValueEntry


class KeyValueStore(Protocol):
    """Protocol for persistent key-value stores.

    Values must be JSON-serializable. Implementations are free to keep
    data in memory, on disk, or anywhere else.
    """

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> bool:
        ...

    def items(self, prefix: str = "") -> Iterator[tuple]:
        """Yield (key, value) pairs whose key starts with prefix."""
        ...


class MemoryKeyValueStore:
    """Dictionary-backed store. Values are deep-copied in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def items(self, prefix: str = "") -> Iterator[tuple]:
        for key in list(self._data):
            if key.startswith(prefix):
                yield key, copy.deepcopy(self._data[key])

    def __len__(self) -> int:
        return len(self._data)


class SqlKeyValueStore:
    """Key-value store persisted in the ``kv_entries`` table.

    Attributes:
        session_factory: SQLAlchemy sessionmaker bound to an initialized engine
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, key: str, default: Any = None) -> Any:
        with self.session_factory() as db:
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                return default
            return entry.value

    def set(self, key: str, value: Any) -> None:
        # Fail fast with TypeError before touching the session
        json.dumps(value)
        with self.session_factory() as db:
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            db.commit()

    def delete(self, key: str) -> bool:
        with self.session_factory() as db:
            result = db.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
            db.commit()
            return result.rowcount > 0

    def items(self, prefix: str = "") -> Iterator[tuple]:
        with self.session_factory() as db:
            rows = self._select_prefix(db, prefix)
            snapshot = [(row.key, row.value) for row in rows]
        yield from snapshot

    @staticmethod
    def _select_prefix(db: Session, prefix: str):
        stmt = select(KeyValueEntry).order_by(KeyValueEntry.key)
        if prefix:
            stmt = stmt.where(KeyValueEntry.key.startswith(prefix, autoescape=True))
        return db.scalars(stmt).all()
