# Overview: Request decorators resolving the staff principal and gating by role.

from functools import wraps
from flask import request, jsonify, g

from .services import token_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid staff bearer token.

    Sets g.current_staff to the resolved StaffProfile. Returns 401 for a
    missing, unknown, revoked or expired token and for inactive staff.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Unauthorized"}), 401

        staff = token_service.resolve_principal(token)
        if not staff:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_staff = staff
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the authenticated staff member to hold one of `roles`."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            staff = getattr(g, "current_staff", None)
            if staff is None:
                return jsonify({"error": "Unauthorized"}), 401

            if staff.role not in roles:
                return jsonify({
                    "error": "Forbidden",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
