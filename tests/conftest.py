import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from tablecycle import InMemoryKvStore, LifecycleEngine, Tablecycle
from tablecycle.config import Settings
from tablecycle.events import clear_handlers
from tablecycle.persistence.models import Base

NOW = dt.datetime(2025, 3, 1, 12, 0, tzinfo=dt.timezone.utc)
HOST = "host_a"


class SpyStore(InMemoryKvStore):
    """In-memory store that records every key written."""

    def __init__(self, items=None):
        super().__init__(items)
        self.writes = []

    def put(self, key, value):
        self.writes.append(key)
        super().put(key, value)


def hours(n: float) -> dt.timedelta:
    return dt.timedelta(hours=n)


@pytest.fixture(autouse=True)
def reset_handlers():
    clear_handlers()
    yield
    clear_handlers()


@pytest.fixture
def store() -> SpyStore:
    return SpyStore()


@pytest.fixture
def lifecycle(store: SpyStore) -> LifecycleEngine:
    return LifecycleEngine(store, clock=lambda: NOW)


@pytest.fixture
def sql_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def client(lifecycle: LifecycleEngine) -> TestClient:
    app = Tablecycle.create_app(settings=Settings(host_id=HOST), lifecycle=lifecycle)
    return TestClient(app)
