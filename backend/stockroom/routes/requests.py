# Overview: Flask API routes for store product requests; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_role
from ..extensions import db
from ..filtering.entities import REQUESTS
from ..listing import fetch_page, list_params_from_request, list_response
from ..models import ProductRequest
from ..models.auth import ROLE_ADMIN, ROLE_STAFF, ROLE_VIEWER
from ..services import request_service


requests_bp = Blueprint("product_requests", __name__, url_prefix="/api/product-requests")


@requests_bp.get("")
@require_auth
@require_role(ROLE_VIEWER)
def list_requests_route():
    """
    List product requests.

    status is derived (Pending / Partial / Fulfilled) and can be filtered
    and sorted like a stored column. Default order: requestDate descending.
    """
    params = list_params_from_request()
    page = fetch_page(db.session.query(ProductRequest), REQUESTS, params)
    return list_response(page, params, request_service.list_row)


@requests_bp.post("")
@require_auth
@require_role(ROLE_STAFF)
def create_request_route():
    product_request = request_service.create_request(request.get_json(silent=True) or {})
    return jsonify({"success": True, "id": product_request.id, "data": product_request.to_dict()}), 201


@requests_bp.get("/<int:request_id>")
@require_auth
@require_role(ROLE_VIEWER)
def get_request_route(request_id: int):
    return jsonify({"success": True, "data": request_service.get_request(request_id).to_dict()})


@requests_bp.put("/<int:request_id>")
@require_auth
@require_role(ROLE_STAFF)
def update_request_route(request_id: int):
    product_request = request_service.update_request(request_id, request.get_json(silent=True) or {})
    return jsonify({"success": True, "id": product_request.id, "data": product_request.to_dict()})


@requests_bp.post("/<int:request_id>/fulfill")
@require_auth
@require_role(ROLE_STAFF)
def fulfill_request_route(request_id: int):
    """
    Record a delivery against a request.

    Request body: {"quantity": 10, "fulfilledDate": "2024-03-05"}  // date optional
    """
    data = request.get_json(silent=True) or {}
    product_request = request_service.fulfill_request(
        request_id,
        data.get("quantity"),
        fulfilled_date=data.get("fulfilledDate"),
    )
    return jsonify({"success": True, "data": product_request.to_dict()})


@requests_bp.delete("/<int:request_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_request_route(request_id: int):
    request_service.delete_request(request_id)
    return jsonify({"success": True, "message": "Product request deleted"})
