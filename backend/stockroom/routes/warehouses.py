# Overview: Flask API routes for warehouses; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_role
from ..extensions import db
from ..filtering.entities import WAREHOUSES
from ..listing import fetch_page, list_params_from_request, list_response
from ..models import Warehouse
from ..models.auth import ROLE_ADMIN, ROLE_STAFF, ROLE_VIEWER
from ..services import warehouse_service


warehouses_bp = Blueprint("warehouses", __name__, url_prefix="/api/warehouses")


@warehouses_bp.get("")
@require_auth
@require_role(ROLE_VIEWER)
def list_warehouses_route():
    params = list_params_from_request()
    page = fetch_page(db.session.query(Warehouse), WAREHOUSES, params)
    return list_response(page, params, lambda w: w.to_dict())


@warehouses_bp.post("")
@require_auth
@require_role(ROLE_STAFF)
def create_warehouse_route():
    warehouse = warehouse_service.create_warehouse(request.get_json(silent=True) or {})
    return jsonify({"success": True, "data": warehouse.to_dict()}), 201


@warehouses_bp.get("/<int:warehouse_id>")
@require_auth
@require_role(ROLE_VIEWER)
def get_warehouse_route(warehouse_id: int):
    return jsonify({"success": True, "data": warehouse_service.get_warehouse(warehouse_id).to_dict()})


@warehouses_bp.put("/<int:warehouse_id>")
@require_auth
@require_role(ROLE_STAFF)
def update_warehouse_route(warehouse_id: int):
    warehouse = warehouse_service.update_warehouse(warehouse_id, request.get_json(silent=True) or {})
    return jsonify({"success": True, "data": warehouse.to_dict()})


@warehouses_bp.delete("/<int:warehouse_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_warehouse_route(warehouse_id: int):
    warehouse_service.delete_warehouse(warehouse_id)
    return jsonify({"success": True, "message": "Warehouse deleted"})
