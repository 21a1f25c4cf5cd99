from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class UserGamification(db.Model):
    """Running points total and level of a user."""
    __tablename__ = "user_gamification"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    total_points = db.Column(db.Integer, nullable=False, default=0)
    level = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "total_points": self.total_points,
            "level": self.level,
            "updated_at": to_utc_z(self.updated_at),
        }


class UserBadge(db.Model):
    __tablename__ = "user_badges"
    __table_args__ = (
        db.UniqueConstraint("user_id", "badge_type", name="uq_user_badges_user_badge"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    badge_type = db.Column(db.String(32), nullable=False)
    earned_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "badge_type": self.badge_type,
            "earned_at": to_utc_z(self.earned_at),
        }


class PointsEvent(db.Model):
    """Ledger of every points award or penalty."""
    __tablename__ = "points_events"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    event_type = db.Column(db.String(64), nullable=False)
    points = db.Column(db.Integer, nullable=False)
    awarded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "event_type": self.event_type,
            "points": self.points,
            "awarded_by": self.awarded_by,
            "created_at": to_utc_z(self.created_at),
        }
