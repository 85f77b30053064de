"""
Key/value store adapters the lifecycle engine persists through.

Both adapters expose the same three calls – ``get``, ``put`` and
``scan_by_prefix`` – with no transactions and no ordering guarantee.
"""

from __future__ import annotations

import copy
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import StoreUnavailable
from .models import KvRow

Entry = Tuple[str, Dict[str, Any]]


class KvStore(Protocol):
    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def put(self, key: str, value: Dict[str, Any]) -> None: ...

    def scan_by_prefix(self, prefix: str) -> List[Entry]: ...


class SqlKvStore:
    """Thin data‑access layer around the ``kv_store`` table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _new_session(self) -> Session:
        return Session(bind=self.engine, future=True)

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        try:
            with self._new_session() as s:
                yield s
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"kv store {action} failed: {exc}") from exc

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._session("get") as s:
            row = s.execute(select(KvRow.value).where(KvRow.key == key)).first()
            return row.value if row else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        """Insert or overwrite ``key`` in a short-lived session."""
        with self._session("put") as s:
            s.merge(KvRow(key=key, value=value))
            s.commit()

    def scan_by_prefix(self, prefix: str) -> List[Entry]:
        with self._session("scan") as s:
            q = select(KvRow.key, KvRow.value).where(
                KvRow.key.startswith(prefix, autoescape=True)
            )
            return [(key, value) for key, value in s.execute(q)]


class InMemoryKvStore:
    """Dict-backed adapter; values are deep-copied in and out."""

    def __init__(self, items: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self._items: Dict[str, Dict[str, Any]] = copy.deepcopy(items or {})

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._items.get(key)
        return copy.deepcopy(value) if value is not None else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        self._items[key] = copy.deepcopy(value)

    def scan_by_prefix(self, prefix: str) -> List[Entry]:
        return [
            (key, copy.deepcopy(value))
            for key, value in self._items.items()
            if key.startswith(prefix)
        ]
