"""
Table kernel – *pure Pydantic* (no SQLAlchemy or FastAPI imports).

* Instances are frozen; ``evolve`` is the copy-on-write path that produces the
  next version (``version + 1``, fresh ``updated_at``).
* ``starts_at`` is kept as the persisted string so rows written by older
  clients with unparseable values still load.
"""

from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .properties import TableDetails
from .timing import parse_instant, utc_now

KEY_PREFIX = "table:"


class TableStatus(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({TableStatus.COMPLETED, TableStatus.CANCELLED})


def new_table_id() -> str:
    return f"table_{uuid.uuid4().hex}"


def table_key(table_id: str) -> str:
    return f"{KEY_PREFIX}{table_id}"


class Table(BaseModel):
    """One scheduled table; every mutation yields a new immutable version."""

    id: str = Field(default_factory=new_table_id)
    host_id: str
    status: TableStatus = TableStatus.SCHEDULED
    starts_at: Optional[str] = None
    date: str = "TBD"
    time: str = "TBD"
    details: TableDetails = Field(default_factory=TableDetails)
    version: int = 0
    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True, "extra": "allow"}

    @field_validator("created_at", "updated_at")
    @classmethod
    def _aware(cls, value: dt.datetime) -> dt.datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value

    @property
    def key(self) -> str:
        return table_key(self.id)

    @property
    def start_instant(self) -> Optional[dt.datetime]:
        """Parsed ``starts_at`` or ``None`` when absent or unparseable."""
        return parse_instant(self.starts_at)

    # copy-on-write mutation
    def evolve(self, *, at: dt.datetime, **changes: Any) -> "Table":
        """Return the next version with ``changes`` applied.

        ``updated_at`` never moves backwards, even if ``at`` lags a clock
        that wrote a previous version.
        """
        updated_at = max(self.updated_at, at)
        return self.model_copy(
            update={**changes, "version": self.version + 1, "updated_at": updated_at}
        )

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_store(cls, data: Dict[str, Any]) -> "Table":
        return cls.model_validate(data)
