# Overview: Flask API routes for user administration; parses input and returns JSON responses.

"""
User Routes

SECURITY: Admin only. An admin cannot delete or deactivate their own
account, or change their own role.
"""

from flask import Blueprint, request, jsonify

from ..decorators import current_user_id, require_auth, require_role
from ..extensions import db
from ..filtering.entities import USERS
from ..listing import fetch_page, list_params_from_request, list_response
from ..models import User
from ..models.auth import ROLE_ADMIN
from ..services import user_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_users_route():
    params = list_params_from_request()
    page = fetch_page(db.session.query(User), USERS, params)
    return list_response(page, params, lambda u: u.to_dict())


@users_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_user_route():
    """
    Request body:
    {
        "name": "...",          // required
        "email": "...",         // required, unique
        "password": "...",      // required, strength rules apply
        "role": "staff",        // admin | staff | viewer (default viewer)
        "phone": "...", "address": "...", "status": "active"
    }
    """
    user = user_service.create_user(request.get_json(silent=True) or {})
    return jsonify({"success": True, "data": user.to_dict()}), 201


@users_bp.get("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def get_user_route(user_id: int):
    return jsonify({"success": True, "data": user_service.get_user(user_id).to_dict()})


@users_bp.put("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_user_route(user_id: int):
    user = user_service.update_user(
        user_id, request.get_json(silent=True) or {}, acting_user_id=current_user_id()
    )
    return jsonify({"success": True, "data": user.to_dict()})


@users_bp.delete("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_user_route(user_id: int):
    user_service.delete_user(user_id, acting_user_id=current_user_id())
    return jsonify({"success": True, "message": "User deleted"})
