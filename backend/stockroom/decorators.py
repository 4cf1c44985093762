# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .models.auth import ROLE_LEVELS
from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid session token.

    Sets on flask.g:
    - g.current_user: the authenticated User
    - g.session_context: the SessionContext (user + session row)

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, revoked or expired token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"success": False, "error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"success": False, "error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function


def require_role(minimum_role: str):
    """
    Require the authenticated user to hold `minimum_role` or higher
    (admin > staff > viewer). Use below @require_auth.
    """
    if minimum_role not in ROLE_LEVELS:
        raise ValueError(f"Unknown role: {minimum_role}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return jsonify({"success": False, "error": "Authentication required"}), 401

            if not user.has_role(minimum_role):
                return jsonify({
                    "success": False,
                    "error": "Permission denied",
                    "requiredRole": minimum_role,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def current_user_id() -> int | None:
    user = getattr(g, "current_user", None)
    return user.id if user else None
