# src/community_hub/db/upsert.py
"""Set-style writes shared by the stores."""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def insert_ignore(session: Session, model: type[Any], **values: Any) -> bool:
    """Insert a row unless its primary key already exists.

    The conflict check happens inside the INSERT statement, so concurrent
    callers cannot both observe "absent" and then write twice.

    Returns:
        True if a row was inserted, False if it was already present.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values).on_conflict_do_nothing()
    elif dialect == "sqlite":
        stmt = sqlite.insert(model).values(**values).on_conflict_do_nothing()
    else:
        raise NotImplementedError(f"insert_ignore is not supported on {dialect}")
    result = session.execute(stmt)
    return bool(result.rowcount)
