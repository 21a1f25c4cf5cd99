# Overview: Flask API routes for user administration, permission overrides and audit log.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..permissions import PermissionCategory, get_permissions_by_category
from ..services import audit_service, permission_service, user_service
from ..validation import json_body, str_arg, int_arg


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")

_CATEGORIES = [
    value for name, value in vars(PermissionCategory).items()
    if name.isupper()
]


@admin_bp.get("/users")
@require_auth
@require_permission("VIEW_USERS")
def list_users():
    page = user_service.list_users(
        g.ctx,
        role=str_arg("role"),
        search=str_arg("search"),
        page=int_arg("page", 1),
        page_size=int_arg("page_size"),
    )
    return jsonify(page.to_dict()), 200


@admin_bp.post("/users")
@require_auth
@require_permission("MANAGE_USERS")
def create_user():
    user = user_service.create_user(g.ctx, json_body())
    return jsonify({"message": "Utilisateur créé", "user": user.to_dict()}), 201


@admin_bp.put("/users/<int:user_id>/role")
@require_auth
@require_permission("MANAGE_USERS")
def set_role(user_id: int):
    user = user_service.set_role(g.ctx, user_id, json_body().get("role"))
    return jsonify({"message": "Rôle mis à jour", "user": user.to_dict()}), 200


@admin_bp.put("/users/<int:user_id>/stores")
@require_auth
@require_permission("MANAGE_USERS")
def assign_stores(user_id: int):
    user = user_service.assign_stores(g.ctx, user_id, json_body().get("store_ids"))
    return jsonify({"message": "Magasins assignés", "user": user.to_dict()}), 200


@admin_bp.put("/users/<int:user_id>/active")
@require_auth
@require_permission("MANAGE_USERS")
def set_active(user_id: int):
    user = user_service.set_active(g.ctx, user_id, json_body().get("is_active"))
    return jsonify({"message": "Statut mis à jour", "user": user.to_dict()}), 200


@admin_bp.post("/users/<int:user_id>/permissions")
@require_auth
@require_permission("MANAGE_PERMISSIONS")
def set_permission_override(user_id: int):
    data = json_body()
    override = permission_service.set_permission_override(
        g.ctx,
        user_id=user_id,
        permission_code=data.get("permission_code"),
        override_type=data.get("override_type"),
        reason=data.get("reason"),
    )
    return jsonify({"message": "Permission mise à jour", "override": override.to_dict()}), 200


@admin_bp.delete("/users/<int:user_id>/permissions/<string:permission_code>")
@require_auth
@require_permission("MANAGE_PERMISSIONS")
def revoke_permission_override(user_id: int, permission_code: str):
    revoked = permission_service.revoke_permission_override(g.ctx, user_id=user_id, permission_code=permission_code)
    if not revoked:
        return jsonify({"error": "No active override"}), 404
    return jsonify({"message": "Permission révoquée"}), 200


@admin_bp.get("/permissions")
@require_auth
@require_permission("VIEW_USERS")
def list_permissions():
    return jsonify({
        category: [
            {"code": code, "name": name, "description": description}
            for code, name, description, _ in get_permissions_by_category(category)
        ]
        for category in _CATEGORIES
    }), 200


@admin_bp.get("/audit-logs")
@require_auth
@require_permission("VIEW_AUDIT_LOG")
def list_audit_logs():
    limit = min(int_arg("limit", 100), 500)
    entries = audit_service.list_entries(
        action=str_arg("action"),
        table_name=str_arg("table"),
        limit=limit,
    )
    return jsonify([entry.to_dict() for entry in entries]), 200
