"""
Lifecycle engine – the four operations the routing layer calls.

Each operation captures ``now`` exactly once (from the argument, else from
the injected clock) and threads it through derivation and reconciliation.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from .core.lifecycle import View, apply_view, derive_status, reconcile_table
from .core.properties import TableDetails
from .core.record import KEY_PREFIX, Table, TableStatus, table_key
from .core.timing import (
    TIMING_KEYS,
    as_utc,
    display_date,
    display_time,
    isoformat,
    resolve_starts_at,
    utc_now,
)
from .errors import NotFound, ValidationError
from .events import emit_create, emit_update
from .persistence.store import KvStore

logger = logging.getLogger(__name__)

# Keys a client may not set through the descriptive payload.
RESERVED_KEYS = frozenset(Table.model_fields) | frozenset(TIMING_KEYS)


def parse_view(value: Optional[str]) -> Optional[View]:
    if value is None or value == "":
        return None
    try:
        return View(value)
    except ValueError:
        raise ValidationError(
            f"Unknown view {value!r}; expected one of {[v.value for v in View]}"
        ) from None


def parse_status(value: Any) -> TableStatus:
    try:
        return TableStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid status {value!r}; expected one of {[s.value for s in TableStatus]}"
        ) from None


class LifecycleEngine:
    """Creates, lists, reads and overrides tables on top of a ``KvStore``."""

    def __init__(
        self, store: KvStore, *, clock: Callable[[], dt.datetime] = utc_now
    ) -> None:
        self.store = store
        self.clock = clock

    def _now(self, now: Optional[dt.datetime]) -> dt.datetime:
        """Capture the operation instant once, always as aware UTC."""
        return as_utc(now if now is not None else self.clock())

    def _save(self, table: Table) -> Table:
        self.store.put(table.key, table.to_store())
        return table

    def _load(self, table_id: str) -> Table:
        data = self.store.get(table_key(table_id))
        if not data:
            raise NotFound(table_id)
        try:
            return Table.from_store(data)
        except PydanticValidationError as exc:
            logger.warning("Unreadable row for table %s: %s", table_id, exc)
            raise NotFound(table_id) from exc

    # ---- create -----------------------------------------------------------
    def create_table(
        self,
        payload: Mapping[str, Any],
        *,
        host_id: str,
        now: Optional[dt.datetime] = None,
    ) -> Table:
        """Normalize timing, derive the initial status and persist.

        Raises ``ValidationError`` before any write if the date/time pair or
        the descriptive payload is malformed.
        """
        now = self._now(now)
        starts_at = resolve_starts_at(payload)

        extras = {k: v for k, v in payload.items() if k not in RESERVED_KEYS}
        try:
            details = TableDetails.model_validate(extras)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid table details: {exc}") from exc

        table = Table(
            host_id=host_id,
            status=derive_status(starts_at, now),
            starts_at=isoformat(starts_at) if starts_at is not None else None,
            date=display_date(starts_at, payload),
            time=display_time(payload),
            details=details,
            created_at=now,
            updated_at=now,
        )
        self._save(table)
        logger.info(
            "Created table %s (status=%s, starts_at=%s)",
            table.id,
            table.status.value,
            table.starts_at,
        )
        emit_create(table)
        return table

    # ---- reads ------------------------------------------------------------
    def _reconcile(self, table: Table, now: dt.datetime) -> Table:
        updated = reconcile_table(table, now)
        if updated is None:
            return table
        self._save(updated)
        logger.info(
            "Auto-transitioned table %s from %s to %s",
            table.id,
            table.status.value,
            updated.status.value,
        )
        emit_update(table, updated)
        return updated

    def _scan(self) -> List[Table]:
        tables = []
        for key, data in self.store.scan_by_prefix(KEY_PREFIX):
            if not data or not data.get("id"):
                logger.warning("Skipping malformed row %s", key)
                continue
            try:
                tables.append(Table.from_store(data))
            except PydanticValidationError as exc:
                logger.warning("Skipping unreadable row %s: %s", key, exc)
        return tables

    def reconcile(self, tables: List[Table], *, now: dt.datetime) -> List[Table]:
        """Bring every table's status in line with ``now``, persisting drift."""
        return [self._reconcile(table, now) for table in tables]

    def list_tables(
        self,
        host_id: str,
        view: Optional[View | str] = None,
        *,
        now: Optional[dt.datetime] = None,
    ) -> List[Table]:
        if not isinstance(view, View):
            view = parse_view(view)
        now = self._now(now)

        owned = [t for t in self._scan() if t.host_id == host_id]
        tables = apply_view(self.reconcile(owned, now=now), view)
        logger.info(
            "Listed %d tables for host %s (view=%s)",
            len(tables),
            host_id,
            view.value if view else "all",
        )
        return tables

    def get_table(self, table_id: str, *, now: Optional[dt.datetime] = None) -> Table:
        now = self._now(now)
        return self._reconcile(self._load(table_id), now)

    # ---- operator action --------------------------------------------------
    def set_status(
        self,
        table_id: str,
        status: TableStatus | str,
        *,
        now: Optional[dt.datetime] = None,
    ) -> Table:
        """Manual override; bypasses derivation entirely."""
        status = parse_status(status)
        now = self._now(now)
        table = self._load(table_id)

        updated = self._save(table.evolve(at=now, status=status))
        logger.info(
            "Set table %s status from %s to %s",
            table_id,
            table.status.value,
            status.value,
        )
        emit_update(table, updated)
        return updated
