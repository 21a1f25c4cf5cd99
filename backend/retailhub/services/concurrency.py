# Overview: Row locking and constraint-conflict helpers for mutations.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ConflictError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def conflict_on_integrity_error(message: str):
    """
    Translate an IntegrityError raised inside the block into ConflictError.

    The session is rolled back first. No retry: the caller surfaces the
    conflict and the user decides what to do next.
    """
    try:
        yield
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(message)
