# Overview: Flask API routes for product categories; parses input and returns JSON responses.

"""
Category Routes

SECURITY: All routes require authentication.
- Reads require viewer
- Create/update/bulk/import require staff
- Delete requires admin
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_role
from ..errors import error_response
from ..extensions import db
from ..filtering.entities import CATEGORIES
from ..listing import fetch_page, list_params_from_request, list_response
from ..models import ProductCategory
from ..models.auth import ROLE_ADMIN, ROLE_STAFF, ROLE_VIEWER
from ..services import category_service
from ..services.category_service import CategoryInUseError
from ..spreadsheet import read_rows


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_role(ROLE_VIEWER)
def list_categories_route():
    """
    List categories.

    Query parameters: page, limit, search, sortField, sortOrder, filters.
    Default order: categoryName ascending. Each row carries productCount.
    """
    params = list_params_from_request()
    page = fetch_page(db.session.query(ProductCategory), CATEGORIES, params)
    counts = category_service.product_counts(c.id for c in page.items)

    def row(category):
        data = category.to_dict()
        data["productCount"] = counts.get(category.id, 0)
        return data

    return list_response(page, params, row)


@categories_bp.post("")
@require_auth
@require_role(ROLE_STAFF)
def create_category_route():
    category = category_service.create_category(request.get_json(silent=True) or {})
    return jsonify({"success": True, "data": category.to_dict()}), 201


@categories_bp.post("/bulk")
@require_auth
@require_role(ROLE_STAFF)
def bulk_create_categories_route():
    """
    Request body: {"categories": [{"categoryName": "...", "description": "..."}, ...]}
    (a bare array is accepted too). Existing names are skipped.
    """
    data = request.get_json(silent=True)
    rows = data.get("categories") if isinstance(data, dict) else data
    created = category_service.bulk_create_categories(rows)
    return jsonify({"success": True, "createdCount": created}), 201


@categories_bp.post("/import")
@require_auth
@require_role(ROLE_STAFF)
def import_categories_route():
    if "file" not in request.files:
        return error_response("file is required", 400)
    created = category_service.bulk_create_categories(read_rows(request.files["file"]))
    return jsonify({"success": True, "createdCount": created}), 201


@categories_bp.get("/<int:category_id>")
@require_auth
@require_role(ROLE_VIEWER)
def get_category_route(category_id: int):
    return jsonify({"success": True, "data": category_service.category_detail(category_id)})


@categories_bp.put("/<int:category_id>")
@require_auth
@require_role(ROLE_STAFF)
def update_category_route(category_id: int):
    category = category_service.update_category(category_id, request.get_json(silent=True) or {})
    return jsonify({"success": True, "data": category.to_dict()})


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_category_route(category_id: int):
    """
    Delete a category.

    Returns 400 while any product still references the category.
    """
    try:
        category_service.delete_category(category_id)
    except CategoryInUseError as e:
        return error_response(str(e), 400, productCount=category_service.product_count(category_id))
    return jsonify({"success": True, "message": "Category deleted"})
