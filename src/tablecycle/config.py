"""
Environment configuration. A ``.env`` file in the working directory is honoured.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./tablecycle.db"

# Stands in for the authenticated user until identity is wired in.
DEFAULT_HOST_ID = "mock_user_id"


def _database_url() -> str:
    url = os.getenv("TABLECYCLE_DATABASE_URL")
    if url:
        return url

    user = os.getenv("POSTGRES_USER")
    password = os.getenv("POSTGRES_PASSWORD")
    db = os.getenv("POSTGRES_DB")
    if user and password and db:
        host = os.getenv("POSTGRES_HOST", "localhost")
        return f"postgresql+psycopg://{user}:{password}@{host}:5432/{db}"
    return DEFAULT_DATABASE_URL


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    host_id: str = DEFAULT_HOST_ID
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True))
        return cls(
            database_url=_database_url(),
            host_id=os.getenv("TABLECYCLE_HOST_ID", DEFAULT_HOST_ID),
            log_level=os.getenv("TABLECYCLE_LOG_LEVEL", "INFO").upper(),
            host=os.getenv("TABLECYCLE_HOST", "0.0.0.0"),
            port=int(os.getenv("TABLECYCLE_PORT", "8000")),
        )
