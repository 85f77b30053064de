"""
Single entry-point that wires SQLAlchemy into tablecycle.
Call once, e.g. in FastAPI startup or from ``Tablecycle.init``.
"""

from sqlalchemy.engine import Engine

from .engine import LifecycleEngine
from .persistence.models import Base
from .persistence.store import SqlKvStore


def init_tablecycle(engine: Engine) -> LifecycleEngine:
    """
    Create the ``kv_store`` table if needed and return a lifecycle engine
    persisting through it.
    """
    Base.metadata.create_all(engine)  # ← this line creates table
    return LifecycleEngine(SqlKvStore(engine))
