"""
Single-table schema: every key/value pair the engine writes lives here.
"""

import datetime as dt

from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def now_utc() -> dt.datetime:  # compact timezone‑aware timestamp
    return dt.datetime.now(tz=dt.timezone.utc)


class KvRow(Base):
    """Opaque key/value row; the value is the JSON form of a Table."""

    __tablename__ = "kv_store"

    key = Column(String, primary_key=True)
    value = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    written_ts = Column(
        DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False
    )
