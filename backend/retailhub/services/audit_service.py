# Overview: Durable audit trail writes and reads.

"""
Audit Trail

Mutations call record() BEFORE their commit so the audit row lands in the
same transaction as the change it describes. Permission denials use
record_denial(), which commits on its own because the denied operation
never reaches a commit.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import AuditLog
from ..time_utils import utcnow


logger = logging.getLogger(__name__)


def record(
    *,
    user_id: int | None,
    action: str,
    table_name: str | None = None,
    record_id=None,
    new_values: dict | None = None,
) -> AuditLog:
    """Stage an audit row in the current session (caller commits)."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        table_name=table_name,
        record_id=str(record_id) if record_id is not None else None,
        new_values=new_values,
        created_at=utcnow(),
    )
    db.session.add(entry)
    return entry


def record_denial(*, user_id: int | None, permission_code: str, resource: str | None = None) -> AuditLog:
    """
    Persist a PERMISSION_DENIED row immediately.

    Anything pending in the session is discarded first: a denied request
    must not piggyback partial writes onto the audit commit.
    """
    db.session.rollback()
    entry = record(
        user_id=user_id,
        action="PERMISSION_DENIED",
        table_name=None,
        record_id=None,
        new_values={"permission": permission_code, "resource": resource},
    )
    db.session.commit()
    logger.warning("Permission denied: user=%s permission=%s resource=%s", user_id, permission_code, resource)
    return entry


def list_entries(*, action: str | None = None, table_name: str | None = None, limit: int = 100) -> list[AuditLog]:
    """Most recent audit rows first, optionally filtered by action and table."""
    query = db.session.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    if table_name:
        query = query.filter(AuditLog.table_name == table_name)
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
