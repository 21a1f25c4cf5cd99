# Overview: Housekeeping jobs: audit log retention.

from __future__ import annotations

import logging
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..errors import ValidationError
from ..models import AuditLog
from ..time_utils import utcnow


logger = logging.getLogger(__name__)

MIN_RETENTION_DAYS = 1
MAX_RETENTION_DAYS = 365


def cleanup_audit_logs(*, retention_days: int | None = None) -> int:
    """
    Delete audit rows older than retention_days. Returns the count.

    retention_days defaults to the AUDIT_RETENTION_DAYS setting.

    Raises ValidationError when retention_days is outside [1, 365].
    """
    if retention_days is None:
        retention_days = current_app.config.get("AUDIT_RETENTION_DAYS", 90)
    if isinstance(retention_days, bool) or not isinstance(retention_days, int):
        raise ValidationError("retention_days must be an integer")
    if not MIN_RETENTION_DAYS <= retention_days <= MAX_RETENTION_DAYS:
        raise ValidationError(
            f"retention_days must be between {MIN_RETENTION_DAYS} and {MAX_RETENTION_DAYS}"
        )

    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(AuditLog).filter(
        AuditLog.created_at < cutoff
    ).delete()
    db.session.commit()
    logger.info("Deleted %s audit rows older than %s days", deleted, retention_days)
    return deleted
