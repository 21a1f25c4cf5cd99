# Overview: Resolves the caller's role context (role, store scope, permissions).

"""
Role Context Resolution

WHY: Every query and mutation needs to know who is asking, which stores
they may touch and which permission codes they carry. The context is
resolved once per request and passed explicitly into every service
function, so permission checks are unit-testable without a request.

FAIL CLOSED: a missing profile, an unknown role or missing store ids
resolve to a seller with an empty store scope. An empty scope matches
no rows, so the fallback can never widen access.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ..extensions import db
from ..models import User, UserPermissionOverride
from ..permissions import Role, DEFAULT_ROLE_PERMISSIONS, PROTECTED_PERMISSIONS


@dataclass(frozen=True)
class RoleContext:
    user_id: int | None
    role: Role
    store_ids: tuple[int, ...] = ()
    permissions: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role is Role.MANAGER

    @property
    def is_seller(self) -> bool:
        return self.role is Role.SELLER

    @property
    def store_count(self) -> int:
        return len(self.store_ids)

    def can_access_store(self, store_id: int | None) -> bool:
        """Admins reach every store; everyone else only their assigned ones."""
        if self.is_admin:
            return True
        if store_id is None:
            return False
        return int(store_id) in self.store_ids

    def has_permission(self, code: str) -> bool:
        return code in self.permissions

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "role": self.role.value,
            "store_ids": list(self.store_ids),
            "store_count": self.store_count,
            "is_admin": self.is_admin,
            "is_manager": self.is_manager,
            "is_seller": self.is_seller,
            "permissions": sorted(self.permissions),
        }


def _coerce_store_ids(raw) -> tuple[int, ...]:
    if not raw:
        return ()
    ids = set()
    for value in raw:
        try:
            ids.add(int(value))
        except (TypeError, ValueError):
            continue
    return tuple(sorted(ids))


def _apply_overrides(base: frozenset[str], overrides) -> frozenset[str]:
    """
    Apply GRANT/DENY overrides on top of role defaults.

    overrides is an iterable of (permission_code, override_type) pairs.
    Protected admin permissions are never touched.
    """
    codes = set(base)
    for code, override_type in overrides or ():
        if code in PROTECTED_PERMISSIONS:
            continue
        if override_type == "GRANT":
            codes.add(code)
        elif override_type == "DENY":
            codes.discard(code)
    return frozenset(codes)


def resolve_context(profile: Mapping | None) -> RoleContext:
    """
    Build a RoleContext from an authenticated profile.

    Pure function: no database access, no failure modes.

    Args:
        profile: mapping with "id", "role", "store_ids" and optional
            "overrides" ([(code, "GRANT"|"DENY"), ...]); may be None.

    Returns:
        RoleContext. Unknown or missing data falls back to a seller
        with no stores.
    """
    if not profile:
        return RoleContext(
            user_id=None,
            role=Role.SELLER,
            store_ids=(),
            permissions=DEFAULT_ROLE_PERMISSIONS[Role.SELLER],
        )

    role = Role.parse(profile.get("role"))
    store_ids = _coerce_store_ids(profile.get("store_ids"))
    if role is None:
        # Unknown role: seller rights, and no store scope at all
        role = Role.SELLER
        store_ids = ()

    permissions = _apply_overrides(
        DEFAULT_ROLE_PERMISSIONS[role],
        profile.get("overrides"),
    )

    return RoleContext(
        user_id=profile.get("id"),
        role=role,
        store_ids=store_ids,
        permissions=permissions,
    )


def build_profile(user: User) -> dict:
    """Flatten a User row (assignments and active overrides) into a profile mapping."""
    overrides = db.session.query(UserPermissionOverride).filter_by(
        user_id=user.id,
        is_active=True,
    ).all()

    return {
        "id": user.id,
        "role": user.role,
        "store_ids": user.store_ids,
        "overrides": [(o.permission_code, o.override_type) for o in overrides],
    }


def load_context(user_id: int | None) -> RoleContext:
    """
    Load a user's RoleContext from the database.

    Inactive or unknown users resolve to the fail-closed default.
    """
    if user_id is None:
        return resolve_context(None)

    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return resolve_context(None)

    return resolve_context(build_profile(user))
