"""
Public surface for tablecycle.
Importing this module does **not** touch the database; call
`Tablecycle.init(database_url=...)` or `init_tablecycle(engine)` during
application start-up.
"""

from .bootstrap import init_tablecycle
from .core.lifecycle import View, derive_status
from .core.properties import TableDetails
from .core.record import Table, TableStatus
from .engine import LifecycleEngine
from .errors import NotFound, StoreUnavailable, TablecycleError, ValidationError
from .events import on
from .persistence.store import InMemoryKvStore, SqlKvStore
from .runtime import Tablecycle

__all__ = [
    "InMemoryKvStore",
    "LifecycleEngine",
    "NotFound",
    "SqlKvStore",
    "StoreUnavailable",
    "Table",
    "TableDetails",
    "TableStatus",
    "Tablecycle",
    "TablecycleError",
    "ValidationError",
    "View",
    "derive_status",
    "init_tablecycle",
    "on",
]
