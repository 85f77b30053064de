"""
Status state machine – derivation, reconciliation and dashboard views.

Everything here is pure: the caller captures ``now`` once and passes it in,
so every table in one pass is judged against the same instant.
"""

from __future__ import annotations

import datetime as dt
import logging
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple

from .record import Table, TableStatus
from .timing import as_utc, parse_instant

logger = logging.getLogger(__name__)

ACTIVE_WINDOW = dt.timedelta(hours=6)
_ZERO = dt.timedelta(0)


def derive_status(starts_at: Any, now: dt.datetime) -> TableStatus:
    """Status a table *should* have at ``now``, ignoring manual cancellation.

    ``starts_at`` may be a datetime, a persisted string or ``None``; anything
    that does not parse yields ``scheduled``.
    """
    start = parse_instant(starts_at)
    if start is None:
        return TableStatus.SCHEDULED

    delta = start - as_utc(now)
    if delta < -ACTIVE_WINDOW:
        return TableStatus.COMPLETED
    if delta <= _ZERO:
        return TableStatus.ACTIVE
    return TableStatus.SCHEDULED


def reconcile_table(table: Table, now: dt.datetime) -> Optional[Table]:
    """Return the next version if the status drifted, else ``None``.

    Cancelled and untimed tables are never touched, so a manual override
    on a table without a start time sticks. Unparseable start times are
    logged and left alone.
    """
    if table.status is TableStatus.CANCELLED or table.starts_at is None:
        return None

    if table.start_instant is None:
        logger.warning(
            "Invalid starts_at for table %s: %r", table.id, table.starts_at
        )
        return None

    now = as_utc(now)
    target = derive_status(table.starts_at, now)
    if target == table.status:
        return None
    return table.evolve(at=now, status=target)


class View(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    HISTORY = "history"


VIEW_STATUSES = {
    View.SCHEDULED: frozenset({TableStatus.SCHEDULED}),
    View.ACTIVE: frozenset({TableStatus.ACTIVE}),
    View.HISTORY: frozenset({TableStatus.COMPLETED, TableStatus.CANCELLED}),
}


def _sort_key(table: Table, descending: bool) -> Tuple[bool, float]:
    start = table.start_instant
    if start is None:
        return (True, 0.0)
    stamp = start.timestamp()
    return (False, -stamp if descending else stamp)


def apply_view(tables: Iterable[Table], view: Optional[View]) -> List[Table]:
    """Filter to ``view`` and order by start time.

    ``history`` is newest first, everything else soonest first. Untimed
    tables compare equal to each other, keep their relative order and sort
    after every timed table.
    """
    if view is None:
        selected = list(tables)
    else:
        wanted = VIEW_STATUSES[view]
        selected = [t for t in tables if t.status in wanted]

    descending = view is View.HISTORY
    selected.sort(key=lambda t: _sort_key(t, descending))
    return selected
