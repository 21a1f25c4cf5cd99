# Overview: Service-layer permission checks against an explicit RoleContext.

"""
Permission Checking with Audit

WHY: Client-side checks are a UX convenience only. Every mutation re-checks
the exact permission it needs against the caller's RoleContext before any
write happens, and every denial leaves a PERMISSION_DENIED audit row.

DESIGN PRINCIPLES:
- Fail closed: deny unless the code is in the context's permission set
- Log denials only: grants are not audited
- Role-phrased messages: the denial text comes from the presentation tables
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..errors import PermissionDeniedError, ValidationError, NotFoundError
from ..models import User, UserPermissionOverride
from ..permissions import PROTECTED_PERMISSIONS, validate_permission_code
from . import audit_service
from .presentation import Domain, no_access_message


logger = logging.getLogger(__name__)


def deny(ctx, permission_code: str, *, domain: Domain | None = None, resource: str | None = None, message: str | None = None):
    """Record the denial and raise PermissionDeniedError."""
    audit_service.record_denial(
        user_id=ctx.user_id,
        permission_code=permission_code,
        resource=resource,
    )
    if message is None:
        message = no_access_message(ctx.role, domain) if domain else f"Permission refusée: {permission_code}"
    raise PermissionDeniedError(message)


def require_permission(ctx, permission_code: str, *, domain: Domain | None = None, resource: str | None = None) -> None:
    """
    Require ctx to carry permission_code.

    Raises:
        PermissionDeniedError: with the role-phrased no-access message
            for `domain` (generic text when no domain is given).

    Usage:
        require_permission(ctx, "CREATE_INVENTORY", domain=Domain.INVENTORY)
    """
    if not ctx.has_permission(permission_code):
        deny(ctx, permission_code, domain=domain, resource=resource)


def require_store_access(ctx, store_id, permission_code: str, *, domain: Domain | None = None) -> None:
    """Require the permission AND that store_id is within the caller's scope."""
    require_permission(ctx, permission_code, domain=domain)
    if not ctx.can_access_store(store_id):
        deny(
            ctx,
            permission_code,
            domain=domain,
            resource=f"store:{store_id}",
            message="Vous n'avez pas accès à ce magasin",
        )


def set_permission_override(
    ctx,
    *,
    user_id: int,
    permission_code: str,
    override_type: str,
    reason: str | None = None,
) -> UserPermissionOverride:
    """
    Grant or deny a permission via per-user override.

    override_type must be "GRANT" or "DENY".
    Admin-level permissions cannot be altered via overrides.
    """
    require_permission(ctx, "MANAGE_PERMISSIONS")

    if permission_code in PROTECTED_PERMISSIONS:
        raise ValidationError("Permission overrides cannot modify admin permissions")
    if not validate_permission_code(permission_code):
        raise ValidationError(f"Unknown permission: {permission_code}")
    if override_type not in ("GRANT", "DENY"):
        raise ValidationError("override_type must be GRANT or DENY")
    if db.session.get(User, user_id) is None:
        raise NotFoundError("Utilisateur introuvable")

    override = db.session.query(UserPermissionOverride).filter_by(
        user_id=user_id,
        permission_code=permission_code,
    ).first()

    if override:
        override.override_type = override_type
        override.is_active = True
        override.reason = reason
        override.granted_by_user_id = ctx.user_id
    else:
        override = UserPermissionOverride(
            user_id=user_id,
            permission_code=permission_code,
            override_type=override_type,
            is_active=True,
            reason=reason,
            granted_by_user_id=ctx.user_id,
        )
        db.session.add(override)

    db.session.flush()
    audit_service.record(
        user_id=ctx.user_id,
        action=f"PERMISSION_{override_type}",
        table_name="user_permission_overrides",
        record_id=override.id,
        new_values={"user_id": user_id, "permission_code": permission_code, "reason": reason},
    )
    db.session.commit()
    logger.info("Permission override %s %s for user %s by %s", override_type, permission_code, user_id, ctx.user_id)
    return override


def revoke_permission_override(ctx, *, user_id: int, permission_code: str) -> bool:
    """Deactivate an override. Returns False when none was active."""
    require_permission(ctx, "MANAGE_PERMISSIONS")

    override = db.session.query(UserPermissionOverride).filter_by(
        user_id=user_id,
        permission_code=permission_code,
        is_active=True,
    ).first()
    if not override:
        return False

    override.is_active = False
    audit_service.record(
        user_id=ctx.user_id,
        action="PERMISSION_OVERRIDE_REVOKED",
        table_name="user_permission_overrides",
        record_id=override.id,
        new_values={"user_id": user_id, "permission_code": permission_code},
    )
    db.session.commit()
    return True
