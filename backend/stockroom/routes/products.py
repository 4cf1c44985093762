# Overview: Flask API routes for product operations; parses input and returns JSON responses.

"""
Product Routes

POST accepts one object (single create) or an array (bulk create in
batches; duplicate part numbers skipped).

SECURITY: All routes require authentication.
- Reads require viewer
- Create/update/import require staff
- Delete requires admin
"""

from flask import Blueprint, request, jsonify
from sqlalchemy.orm import joinedload

from ..decorators import require_auth, require_role
from ..errors import error_response
from ..extensions import db
from ..filtering.entities import PRODUCTS
from ..listing import fetch_page, list_params_from_request, list_response
from ..models import Product
from ..models.auth import ROLE_ADMIN, ROLE_STAFF, ROLE_VIEWER
from ..services import product_service
from ..spreadsheet import read_rows


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_role(ROLE_VIEWER)
def list_products_route():
    """
    List products.

    Query parameters: page, limit, search, sortField, sortOrder, filters.
    Search covers name, part number, card number, description, category
    and supplier names. Default order: createdAt descending.
    """
    params = list_params_from_request()
    query = db.session.query(Product).options(
        joinedload(Product.category),
        joinedload(Product.supplier),
    )
    page = fetch_page(query, PRODUCTS, params)
    return list_response(page, params, product_service.list_row)


@products_bp.post("")
@require_auth
@require_role(ROLE_STAFF)
def create_product_route():
    data = request.get_json(silent=True)
    if isinstance(data, list):
        count = product_service.bulk_create_products(data)
        return jsonify({"success": True, "count": count}), 201

    product = product_service.create_product(data or {})
    return jsonify({"success": True, "data": product.to_dict()}), 201


@products_bp.post("/import")
@require_auth
@require_role(ROLE_STAFF)
def import_products_route():
    if "file" not in request.files:
        return error_response("file is required", 400)
    count = product_service.bulk_create_products(read_rows(request.files["file"]))
    return jsonify({"success": True, "count": count}), 201


@products_bp.get("/low-stock")
@require_auth
@require_role(ROLE_VIEWER)
def low_stock_route():
    """Products with a reorder level set and stock below it."""
    products = product_service.low_stock_products()
    return jsonify({
        "success": True,
        "data": [product_service.list_row(p) for p in products],
        "totalCount": len(products),
    })


@products_bp.get("/<int:product_id>")
@require_auth
@require_role(ROLE_VIEWER)
def get_product_route(product_id: int):
    return jsonify({"success": True, "data": product_service.get_product(product_id).to_dict()})


@products_bp.get("/<int:product_id>/stock-movements")
@require_auth
@require_role(ROLE_VIEWER)
def stock_movements_route(product_id: int):
    limit = request.args.get("limit", 100, type=int)

    # Clamp limit
    if limit < 1:
        limit = 1
    if limit > 500:
        limit = 500

    movements = product_service.stock_movements(product_id, limit=limit)
    return jsonify({"success": True, "data": [m.to_dict() for m in movements]})


@products_bp.put("/<int:product_id>")
@require_auth
@require_role(ROLE_STAFF)
def update_product_route(product_id: int):
    product = product_service.update_product(product_id, request.get_json(silent=True) or {})
    return jsonify({"success": True, "data": product.to_dict()})


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_product_route(product_id: int):
    product_service.delete_product(product_id)
    return jsonify({"success": True, "message": "Product deleted"})
