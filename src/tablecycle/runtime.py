"""
tablecycle.runtime  ──  A thin façade that owns the SQLAlchemy engine and the
lifecycle engine for one process.

Usage pattern in user code
--------------------------
    from tablecycle import Tablecycle

    app = Tablecycle.create_app(settings=Settings.from_env())

or, embedding without HTTP:

    lifecycle = Tablecycle.init(database_url="sqlite:///tables.db").lifecycle
"""

from __future__ import annotations

from typing import Any, ClassVar, Optional

from fastapi import FastAPI
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from . import api
from .bootstrap import init_tablecycle
from .config import Settings
from .engine import LifecycleEngine


class Tablecycle:
    """
    Process-wide singleton so callers don't have to juggle several engines
    pointing at the same database.
    """

    _singleton: ClassVar[Optional["Tablecycle"]] = None

    def __init__(self, lifecycle: LifecycleEngine, engine: Optional[Engine] = None):
        self.lifecycle = lifecycle
        self.engine = engine

    # ---------- one-shot initialiser ----------
    @classmethod
    def init(cls, *, database_url: str, **engine_kwargs: Any) -> "Tablecycle":
        if cls._singleton is None:
            engine = create_engine(
                database_url, pool_pre_ping=True, future=True, **engine_kwargs
            )
            cls._singleton = cls(init_tablecycle(engine), engine)
        return cls._singleton

    # ---------- convenience helpers ----------
    @classmethod
    def instance(cls) -> "Tablecycle":
        if cls._singleton is None:
            raise RuntimeError("Tablecycle.init() has not been called")
        return cls._singleton

    @classmethod
    def shutdown(cls) -> None:
        if cls._singleton is not None and cls._singleton.engine is not None:
            cls._singleton.engine.dispose()
        cls._singleton = None

    @classmethod
    def create_app(
        cls,
        *,
        settings: Optional[Settings] = None,
        lifecycle: Optional[LifecycleEngine] = None,
        **fastapi_kwargs: Any,
    ) -> FastAPI:
        """
        One-liner for web apps. Pass ``lifecycle`` to serve an engine built
        elsewhere (tests, in-memory stores); otherwise the singleton is
        initialised from ``settings.database_url``.
        """
        settings = settings or Settings.from_env()
        if lifecycle is None:
            lifecycle = cls.init(database_url=settings.database_url).lifecycle

        fastapi_kwargs.setdefault("title", "tablecycle")
        app = FastAPI(**fastapi_kwargs)
        app.state.settings = settings
        app.state.lifecycle = lifecycle
        api.install(app)
        return app
