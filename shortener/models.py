"""SQLAlchemy ORM models for the URL shortener application.

This module defines the database schema for URL mappings, including the
storage-level uniqueness constraints the code registry relies on for its
optimistic insert path.

Data Model Layout
=================
::
    url_mappings table
    ├─ id (INTEGER PRIMARY KEY, autoincrement)
    ├─ short_code (VARCHAR(32) UNIQUE, INDEXED)
    ├─ full_url (TEXT NOT NULL)
    ├─ full_url_hash (CHAR(64) UNIQUE)  -- sha256 of full_url
    ├─ clicks (INTEGER NOT NULL DEFAULT 0, CHECK clicks >= 0)
    ├─ created_at (TIMESTAMPTZ NOT NULL)
    └─ updated_at (TIMESTAMPTZ NOT NULL)

How to Use
===========
**Step 1 — Import**::
    from shortener.models import URLMapping

**Step 2 — Build a record (the registry does this)**::
    now = utcnow()
    mapping = URLMapping(
        short_code="abc123x",
        full_url="https://example.com",
        full_url_hash=hash_url("https://example.com"),
        clicks=0,
        created_at=now,
        updated_at=now,
    )

Key Behaviours
===============
- full_url_hash carries the one-record-per-URL constraint; long TEXT columns
  cannot be indexed uniquely on every backend.
- Defaults (code, timestamps, clicks) are computed by the registry before the
  insert, not injected by the database.
- clicks is only ever changed by an atomic ``clicks = clicks + 1`` update.

Classes:
    URLMapping:  A full URL, its short code and its visit counter.
"""

import datetime
import hashlib

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shortener.database import Base

__all__ = ["URLMapping", "hash_url", "utcnow"]


def hash_url(full_url: str) -> str:
    return hashlib.sha256(full_url.encode("utf-8")).hexdigest()


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class URLMapping(Base):
    __tablename__ = "url_mappings"
    __table_args__ = (CheckConstraint("clicks >= 0", name="ck_url_mappings_clicks_non_negative"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    short_code: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    full_url: Mapped[str] = mapped_column(Text, nullable=False)
    full_url_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<URLMapping(id={self.id}, short_code='{self.short_code}', clicks={self.clicks})>"
