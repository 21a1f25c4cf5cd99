# Overview: Points, levels and badges; awards are applied in a single transaction.

"""
Gamification

award_points() updates the running total, recomputes the level and inserts
every newly reached badge in one commit, so a failure can never leave points
without the matching level or badges. Totals never drop below zero and
badges, once earned, are kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func

from ..extensions import db
from ..errors import ValidationError, NotFoundError
from ..models import User, UserStore, UserGamification, UserBadge, PointsEvent
from ..time_utils import utcnow
from . import audit_service, cache_service
from .concurrency import lock_for_update
from .permission_service import deny, require_permission
from .presentation import Domain


logger = logging.getLogger(__name__)


BASE_POINTS = {
    "sale_completed": 10,
    "product_sold": 5,
    "customer_satisfaction": 15,
    "training_completed": 20,
    "perfect_attendance": 25,
}

PENALTIES = {
    "late_arrival": -10,
    "customer_complaint": -20,
    "product_return": -15,
    "missed_target": -25,
    "training_missed": -30,
}

# Named multipliers accepted in place of a number
MULTIPLIERS = {
    "weekend_sale": 1.5,
    "holiday_sale": 2.0,
    "premium_product": 1.3,
    "new_customer": 1.2,
    "repeat_customer": 1.1,
}

MAX_MULTIPLIER = 5.0


@dataclass(frozen=True)
class Level:
    level: int
    name: str
    required_points: int


LEVELS = (
    Level(1, "Débutant", 0),
    Level(2, "Vendeur", 100),
    Level(3, "Vendeur Confirmé", 300),
    Level(4, "Expert", 600),
    Level(5, "Maître Vendeur", 1000),
)


@dataclass(frozen=True)
class Badge:
    type: str
    name: str
    required_points: int


BADGES = (
    Badge("bronze", "Bronze", 100),
    Badge("silver", "Argent", 300),
    Badge("gold", "Or", 600),
    Badge("diamond", "Diamant", 1000),
    Badge("platinum", "Platine", 2000),
)


def level_for(points: int) -> Level:
    """Highest level whose threshold is reached."""
    current = LEVELS[0]
    for level in LEVELS:
        if points >= level.required_points:
            current = level
    return current


def next_level(level: Level) -> Level | None:
    for candidate in LEVELS:
        if candidate.level == level.level + 1:
            return candidate
    return None


def badges_for(points: int) -> list[Badge]:
    return [badge for badge in BADGES if points >= badge.required_points]


def compute_points(event_type: str, multiplier=1.0) -> int:
    """
    Points for an event. Multipliers scale rewards only; penalties are fixed.

    Raises:
        ValidationError: unknown event type or invalid multiplier
    """
    if isinstance(multiplier, str):
        if multiplier not in MULTIPLIERS:
            raise ValidationError(f"Unknown multiplier: {multiplier}")
        multiplier = MULTIPLIERS[multiplier]
    if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)):
        raise ValidationError("multiplier must be a number")
    if multiplier <= 0 or multiplier > MAX_MULTIPLIER:
        raise ValidationError(f"multiplier must be in (0, {MAX_MULTIPLIER}]")

    if event_type in BASE_POINTS:
        return int(round(BASE_POINTS[event_type] * multiplier))
    if event_type in PENALTIES:
        return PENALTIES[event_type]
    raise ValidationError(f"Unknown event type: {event_type}")


def _shares_store(ctx, user: User) -> bool:
    return bool(set(ctx.store_ids) & set(user.store_ids))


def _can_see(ctx, user: User) -> bool:
    if ctx.user_id == user.id or ctx.is_admin:
        return True
    return ctx.is_manager and _shares_store(ctx, user)


def _get_or_create(user_id: int) -> UserGamification:
    record = lock_for_update(db.session.query(UserGamification).filter_by(user_id=user_id)).first()
    if record is None:
        record = UserGamification(user_id=user_id, total_points=0, level=1)
        db.session.add(record)
        db.session.flush()
    return record


def award_points(ctx, user_id: int, event_type: str, multiplier=1.0) -> dict:
    """
    Apply a reward or penalty to a user.

    Admins may award anyone; managers only users sharing one of their
    stores. Sellers cannot award points.

    Returns:
        {"points", "total_points", "level", "level_name", "level_up",
         "new_badges"}
    """
    require_permission(ctx, "AWARD_POINTS", domain=Domain.GAMIFICATION)

    user = db.session.get(User, user_id)
    if not user or not user.is_active:
        raise NotFoundError("Utilisateur introuvable")
    if not ctx.is_admin and not _shares_store(ctx, user):
        deny(ctx, "AWARD_POINTS", domain=Domain.GAMIFICATION, resource=f"user:{user_id}")

    points = compute_points(event_type, multiplier)

    record = _get_or_create(user.id)
    previous_level = record.level
    record.total_points = max(0, record.total_points + points)
    level = level_for(record.total_points)
    record.level = level.level

    now = utcnow()
    db.session.add(PointsEvent(
        user_id=user.id,
        event_type=event_type,
        points=points,
        awarded_by=ctx.user_id,
        created_at=now,
    ))

    owned = {b.badge_type for b in db.session.query(UserBadge).filter_by(user_id=user.id).all()}
    new_badges = [badge for badge in badges_for(record.total_points) if badge.type not in owned]
    for badge in new_badges:
        db.session.add(UserBadge(user_id=user.id, badge_type=badge.type, earned_at=now))

    audit_service.record(
        user_id=ctx.user_id,
        action="POINTS_AWARDED",
        table_name="user_gamification",
        record_id=user.id,
        new_values={
            "event_type": event_type,
            "points": points,
            "total_points": record.total_points,
            "level": record.level,
            "badges": [b.type for b in new_badges],
        },
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_GAMIFICATION)
    logger.info("User %s %+d points (%s) by user %s", user.id, points, event_type, ctx.user_id)

    return {
        "points": points,
        "total_points": record.total_points,
        "level": level.level,
        "level_name": level.name,
        "level_up": level.level > previous_level,
        "new_badges": [b.type for b in new_badges],
    }


def get_profile(ctx, user_id: int | None = None) -> dict:
    """Points, level progress and badges. Anyone may read their own profile."""
    user_id = ctx.user_id if user_id is None else user_id

    user = db.session.get(User, user_id) if user_id is not None else None
    if not user:
        raise NotFoundError("Utilisateur introuvable")
    if user.id != ctx.user_id:
        require_permission(ctx, "VIEW_GAMIFICATION", domain=Domain.GAMIFICATION)
        if not _can_see(ctx, user):
            deny(ctx, "VIEW_GAMIFICATION", domain=Domain.GAMIFICATION, resource=f"user:{user_id}")

    record = db.session.query(UserGamification).filter_by(user_id=user.id).first()
    total = record.total_points if record else 0
    level = level_for(total)
    upcoming = next_level(level)
    if upcoming:
        span = upcoming.required_points - level.required_points
        progress = (total - level.required_points) / span * 100
    else:
        progress = 100.0

    badges = db.session.query(UserBadge).filter_by(user_id=user.id).order_by(UserBadge.earned_at.asc(), UserBadge.id.asc()).all()
    events = (
        db.session.query(PointsEvent)
        .filter_by(user_id=user.id)
        .order_by(PointsEvent.created_at.desc(), PointsEvent.id.desc())
        .limit(20)
        .all()
    )

    return {
        "user_id": user.id,
        "user_name": user.name,
        "total_points": total,
        "level": level.level,
        "level_name": level.name,
        "next_level": upcoming.level if upcoming else None,
        "next_level_points": upcoming.required_points if upcoming else None,
        "progress_to_next_level": round(progress, 1),
        "badges": [b.to_dict() for b in badges],
        "recent_events": [e.to_dict() for e in events],
    }


def leaderboard(ctx, limit: int = 10) -> list[dict]:
    """Top users by points; non-admins see colleagues from their stores only."""
    require_permission(ctx, "VIEW_GAMIFICATION", domain=Domain.GAMIFICATION)

    query = db.session.query(UserGamification, User).join(User, User.id == UserGamification.user_id)
    query = query.filter(User.is_active.is_(True))
    if not ctx.is_admin:
        colleague_ids = db.session.query(UserStore.user_id).filter(UserStore.store_id.in_(ctx.store_ids or (-1,)))
        query = query.filter(User.id.in_(colleague_ids))

    rows = query.order_by(UserGamification.total_points.desc(), User.id.asc()).limit(limit).all()
    badge_counts = dict(
        db.session.query(UserBadge.user_id, func.count(UserBadge.id))
        .filter(UserBadge.user_id.in_([user.id for _, user in rows] or [-1]))
        .group_by(UserBadge.user_id)
        .all()
    )
    return [
        {
            "rank": index,
            "user_id": user.id,
            "user_name": user.name,
            "total_points": record.total_points,
            "level": record.level,
            "badge_count": badge_counts.get(user.id, 0),
        }
        for index, (record, user) in enumerate(rows, start=1)
    ]
