"""
Audit retention tests (service and CLI).
"""

from datetime import timedelta

import pytest

from retailhub.errors import ValidationError
from retailhub.models import AuditLog, User
from retailhub.services import maintenance_service
from retailhub.time_utils import utcnow


def _entry(days_old):
    return AuditLog(action="STORE_UPDATED", table_name="stores", record_id="1",
                    created_at=utcnow() - timedelta(days=days_old))


class TestCleanupAuditLogs:

    def test_deletes_only_older_rows(self, db_session):
        db_session.add_all([_entry(200), _entry(100), _entry(10)])
        db_session.commit()

        assert maintenance_service.cleanup_audit_logs(retention_days=90) == 2
        assert db_session.query(AuditLog).count() == 1

    @pytest.mark.parametrize("days", [0, 366, -5, "30", 1.5, True])
    def test_retention_bounds(self, db_session, days):
        with pytest.raises(ValidationError):
            maintenance_service.cleanup_audit_logs(retention_days=days)

    def test_cli_command(self, app, db_session):
        db_session.add(_entry(400))
        db_session.commit()
        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-audit-logs", "--retention-days", "365"])
        assert result.exit_code == 0
        assert "Deleted 1 audit rows" in result.output

    def test_default_retention_comes_from_config(self, app, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "AUDIT_RETENTION_DAYS", 30)
        db_session.add_all([_entry(60), _entry(10)])
        db_session.commit()

        assert maintenance_service.cleanup_audit_logs() == 1

        db_session.add(_entry(45))
        db_session.commit()
        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-audit-logs"])
        assert result.exit_code == 0
        assert "Deleted 1 audit rows older than 30 days." in result.output
        assert db_session.query(AuditLog).count() == 1

    def test_cli_rejects_out_of_range(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-audit-logs", "--retention-days", "0"])
        assert result.exit_code != 0


class TestSystemInit:

    def test_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()
        assert runner.invoke(args=["system", "init"]).exit_code == 0
        assert runner.invoke(args=["system", "init"]).exit_code == 0
        roles = sorted(u.role for u in db_session.query(User).all())
        assert roles == ["admin", "manager", "seller"]
