# Overview: Admin user management: accounts, roles and store assignments.

from __future__ import annotations

import logging

from ..extensions import db
from ..errors import ValidationError, NotFoundError, ConflictError
from ..models import User, UserStore, Store
from ..permissions import Role
from . import audit_service
from .auth_service import hash_password
from .permission_service import require_permission
from .query_scope import apply_search, paginate


logger = logging.getLogger(__name__)


def _parse_role(value) -> Role:
    role = Role.parse(value)
    if role is None:
        raise ValidationError(f"Invalid role: {value}")
    return role


def _validate_store_ids(store_ids) -> list[int]:
    if store_ids is None:
        return []
    if not isinstance(store_ids, (list, tuple, set)):
        raise ValidationError("store_ids must be a list")
    try:
        ids = sorted({int(s) for s in store_ids})
    except (TypeError, ValueError):
        raise ValidationError("store_ids must contain integers")
    if ids:
        found = {row[0] for row in db.session.query(Store.id).filter(Store.id.in_(ids)).all()}
        missing = [s for s in ids if s not in found]
        if missing:
            raise ValidationError(f"Unknown store ids: {missing}")
    return ids


def _replace_assignments(user: User, store_ids: list[int]) -> None:
    db.session.query(UserStore).filter_by(user_id=user.id).delete()
    for store_id in store_ids:
        db.session.add(UserStore(user_id=user.id, store_id=store_id))
    db.session.flush()
    db.session.expire(user, ["store_links"])


def create_user_record(*, email: str, name: str, password: str, role="seller", store_ids=None) -> User:
    """
    Insert a user without an acting context (bootstrap and CLI use).

    Raises:
        ValidationError: bad email/name/role or weak password
        ConflictError: email already registered
    """
    email = (email or "").strip().lower()
    name = (name or "").strip()
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")
    if not name:
        raise ValidationError("name is required")
    role = _parse_role(role)

    if db.session.query(User.id).filter(User.email == email).first():
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        role=role.value,
        is_active=True,
    )
    db.session.add(user)
    db.session.flush()
    _replace_assignments(user, _validate_store_ids(store_ids))
    return user


def create_user(ctx, data: dict) -> User:
    require_permission(ctx, "MANAGE_USERS")
    user = create_user_record(
        email=data.get("email"),
        name=data.get("name"),
        password=data.get("password"),
        role=data.get("role", "seller"),
        store_ids=data.get("store_ids"),
    )
    audit_service.record(
        user_id=ctx.user_id,
        action="USER_CREATED",
        table_name="users",
        record_id=user.id,
        new_values={"email": user.email, "role": user.role, "store_ids": user.store_ids},
    )
    db.session.commit()
    logger.info("User %s (%s) created by user %s", user.id, user.role, ctx.user_id)
    return user


def _get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("Utilisateur introuvable")
    return user


def set_role(ctx, user_id: int, role) -> User:
    require_permission(ctx, "MANAGE_USERS")
    user = _get_user(user_id)
    role = _parse_role(role)
    if user.id == ctx.user_id and role is not Role.ADMIN:
        raise ValidationError("You cannot remove your own admin role")

    user.role = role.value
    audit_service.record(
        user_id=ctx.user_id,
        action="USER_ROLE_CHANGED",
        table_name="users",
        record_id=user.id,
        new_values={"role": user.role},
    )
    db.session.commit()
    logger.info("User %s role set to %s by user %s", user.id, user.role, ctx.user_id)
    return user


def assign_stores(ctx, user_id: int, store_ids) -> User:
    """Replace the user's store assignments."""
    require_permission(ctx, "MANAGE_USERS")
    user = _get_user(user_id)
    ids = _validate_store_ids(store_ids)
    _replace_assignments(user, ids)

    audit_service.record(
        user_id=ctx.user_id,
        action="USER_STORES_ASSIGNED",
        table_name="user_stores",
        record_id=user.id,
        new_values={"store_ids": ids},
    )
    db.session.commit()
    logger.info("User %s assigned to stores %s by user %s", user.id, ids, ctx.user_id)
    return user


def set_active(ctx, user_id: int, is_active: bool) -> User:
    """Users are deactivated, never hard-deleted."""
    require_permission(ctx, "MANAGE_USERS")
    if not isinstance(is_active, bool):
        raise ValidationError("is_active must be a boolean")
    user = _get_user(user_id)
    if user.id == ctx.user_id and not is_active:
        raise ValidationError("You cannot deactivate your own account")

    user.is_active = is_active
    audit_service.record(
        user_id=ctx.user_id,
        action="USER_ACTIVATED" if user.is_active else "USER_DEACTIVATED",
        table_name="users",
        record_id=user.id,
        new_values={"is_active": user.is_active},
    )
    db.session.commit()
    return user


def list_users(ctx, *, role=None, search=None, page=1, page_size=None):
    require_permission(ctx, "VIEW_USERS")
    query = db.session.query(User)
    if not ctx.is_admin:
        colleague_ids = db.session.query(UserStore.user_id).filter(UserStore.store_id.in_(ctx.store_ids or (-1,)))
        query = query.filter(User.id.in_(colleague_ids))
    if role not in (None, "all"):
        query = query.filter(User.role == _parse_role(role).value)
    query = apply_search(query, [User.name, User.email], search)
    query = query.order_by(User.name.asc(), User.id.asc())
    return paginate(query, page, page_size)
