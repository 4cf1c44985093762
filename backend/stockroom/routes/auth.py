# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- bcrypt password verification
- One generic 401 for unknown email, wrong password and inactive account
- Server-issued session tokens (hashed at rest, absolute + idle timeout)
- Password change revokes every other session of the user
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import bearer_token, require_auth
from ..errors import error_response
from ..services import auth_service, session_service, user_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

INVALID_CREDENTIALS = "Invalid email or password"


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Request body: {"email": "...", "password": "..."}

    Returns the user (no password hash), its permissions and a token to
    send as "Authorization: Bearer <token>".
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return error_response("Email and password are required", 400)

    user = auth_service.authenticate(email, password)
    if not user:
        current_app.logger.info("Failed login for %s", auth_service.normalize_email(email))
        return error_response(INVALID_CREDENTIALS, 401)

    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )

    return jsonify({
        "success": True,
        "user": user.to_dict(),
        "permissions": user.permissions,
        "token": token,
        "session": session.to_dict(),
        "message": "Login successful",
    }), 200


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    WHY: Explicit logout prevents token reuse.
    """
    token = bearer_token()
    if not token:
        return error_response("Authorization header required", 401)

    if not session_service.revoke_session(token, reason="User logout"):
        return error_response("Invalid or expired token", 401)

    return jsonify({"success": True, "message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "success": True,
        "user": user.to_dict(),
        "permissions": user.permissions,
        "session": g.session_context.session.to_dict(),
    })


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    """
    Request body: {"currentPassword": "...", "newPassword": "..."}

    The calling session stays valid; all other sessions are revoked.
    """
    data = request.get_json(silent=True) or {}
    auth_service.change_password(
        user=g.current_user,
        current_password=data.get("currentPassword"),
        new_password=data.get("newPassword"),
        keep_session_id=g.session_context.session.id,
    )
    return jsonify({"success": True, "message": "Password changed"})


@auth_bp.put("/profile")
@require_auth
def update_profile_route():
    """Self-service edit of name, email, phone and address."""
    user = user_service.update_profile(g.current_user, request.get_json(silent=True) or {})
    return jsonify({"success": True, "user": user.to_dict()})
