"""Dialect-aware INSERT ... ON CONFLICT builder.

Production runs on Postgres; the test suite runs the same statements on SQLite.
Both dialects expose `on_conflict_do_update` with an `excluded` namespace.
"""

from __future__ import annotations

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def insert_for(session: AsyncSession, table):
    """Return a dialect-specific `insert(table)` for the session's bind."""
    if session.bind.dialect.name == "sqlite":
        return sqlite.insert(table)
    return postgresql.insert(table)
