"""
Shared SQLAlchemy base and timestamp helper for the storefront models.
"""
from sqlalchemy.orm import declarative_base
from datetime import datetime, UTC

# Registers JSONB compilation for SQLite so the schema can be created in tests.
from .. import sqlite_compiler_shims  # noqa: F401


def now_utc():
    """Return an aware UTC datetime for default/updated timestamps."""
    return datetime.now(UTC)


Base = declarative_base()
