"""Single-statement insert-or-update helpers.

Both SQLite and PostgreSQL support ``INSERT ... ON CONFLICT``, so a write keyed
on a unique constraint resolves atomically inside the database: concurrent
callers racing on the same key end with one row and the last write wins.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def _insert_for(db: Session, model):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"Upsert is not supported for dialect {dialect!r}")


def upsert(
    db: Session,
    model,
    *,
    keys: Iterable[str],
    values: Dict[str, Any],
    on_insert: Dict[str, Any] | None = None,
    on_update: Dict[str, Any] | None = None,
) -> None:
    """Insert ``values`` (+ ``on_insert``) or, on a key conflict, apply ``values`` (+ ``on_update``).

    ``on_update`` may hold SQL expressions on the existing row, e.g.
    ``{"attempts": Model.attempts + 1}``.
    """
    keys = list(keys)
    row = {**values, **(on_insert or {})}
    stmt = _insert_for(db, model).values(**row)
    set_ = {k: v for k, v in values.items() if k not in keys}
    set_.update(on_update or {})
    stmt = stmt.on_conflict_do_update(index_elements=keys, set_=set_)
    db.execute(stmt)


def insert_or_ignore(db: Session, model, *, keys: Iterable[str], values: Dict[str, Any]) -> bool:
    """Insert a row unless its unique key already exists. Returns True when a row was inserted."""
    stmt = _insert_for(db, model).values(**values).on_conflict_do_nothing(index_elements=list(keys))
    result = db.execute(stmt)
    return bool(result.rowcount)
