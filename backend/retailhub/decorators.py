# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import request, jsonify, g

from .services import session_service, permission_service
from .errors import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'ctx')


def require_auth(f):
    """
    Require a bearer token and establish the caller's RoleContext.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.ctx: The RoleContext passed explicitly to every service call
    - g.session_token: The SessionToken row

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, revoked or expired token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.ctx = context.role_context
        g.session_token = context.session

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a specific permission before the route body runs.

    Services re-check the exact permission they need; this is the coarse
    gate that keeps obviously unauthorized calls away from them.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(
                    g.ctx,
                    permission_code,
                    resource=request.path,
                )
            except PermissionDeniedError as e:
                return jsonify({
                    "error": e.message,
                    "required_permission": permission_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
