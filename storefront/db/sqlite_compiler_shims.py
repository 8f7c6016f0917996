"""SQLite compilation shim for the PostgreSQL JSONB type.

Audit metadata is stored as JSONB on PostgreSQL. When the test suite runs
against in-memory SQLite, `Base.metadata.create_all()` needs a SQLite
rendering for that type; JSON (stored as TEXT) is enough for the simple
dictionaries the audit trail writes.

Usage: Imported for side-effects by storefront.db.models.
"""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(element, compiler, **kw):  # pragma: no cover - trivial
    return "JSON"
