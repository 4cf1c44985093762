# Overview: Flask API routes for suppliers and customers; parses input and returns JSON responses.

"""
Supplier / Customer Routes

Both parties expose the same surface, so one factory builds both
blueprints:

    GET    /api/<parties>            list
    POST   /api/<parties>            object -> create, array -> bulk create
    POST   /api/<parties>/import     spreadsheet upload -> bulk create
    DELETE /api/<parties>?ids=1,2,3  multi-delete
    GET/PUT/DELETE /api/<parties>/<id>

SECURITY: reads require viewer, writes require staff, deletes require admin.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_role
from ..errors import error_response
from ..extensions import db
from ..filtering import entities
from ..filtering.translator import EntityQuery
from ..listing import fetch_page, list_params_from_request, list_response
from ..models.auth import ROLE_ADMIN, ROLE_STAFF, ROLE_VIEWER
from ..services import party_service
from ..services.party_service import CUSTOMERS, SUPPLIERS, Party
from ..spreadsheet import read_rows
from ..validation import parse_id_list


def party_blueprint(name: str, party: Party, entity: EntityQuery) -> Blueprint:
    bp = Blueprint(name, __name__, url_prefix=f"/api/{name}")
    plural = party.label.lower() + "s"

    @bp.get("")
    @require_auth
    @require_role(ROLE_VIEWER)
    def list_route():
        params = list_params_from_request()
        page = fetch_page(db.session.query(party.model), entity, params)
        return list_response(page, params, party_service.list_row)

    @bp.post("")
    @require_auth
    @require_role(ROLE_STAFF)
    def create_route():
        data = request.get_json(silent=True)
        if isinstance(data, list):
            count = party_service.bulk_create(party, data)
            return jsonify({"success": True, "count": count}), 201

        record = party_service.create_party(party, data or {})
        return jsonify({"success": True, "data": record.to_dict()}), 201

    @bp.post("/import")
    @require_auth
    @require_role(ROLE_STAFF)
    def import_route():
        if "file" not in request.files:
            return error_response("file is required", 400)
        count = party_service.bulk_create(party, read_rows(request.files["file"]))
        return jsonify({"success": True, "count": count}), 201

    @bp.delete("")
    @require_auth
    @require_role(ROLE_ADMIN)
    def delete_many_route():
        """Multi-delete: ?ids=1,2,3 (all-or-nothing)."""
        ids = parse_id_list(request.args.get("ids"))
        deleted = party_service.delete_many(party, ids)
        return jsonify({"success": True, "deletedCount": deleted, "message": f"{deleted} {plural} deleted"})

    @bp.get("/<int:party_id>")
    @require_auth
    @require_role(ROLE_VIEWER)
    def get_route(party_id: int):
        return jsonify({"success": True, "data": party_service.get_party(party, party_id).to_dict()})

    @bp.put("/<int:party_id>")
    @require_auth
    @require_role(ROLE_STAFF)
    def update_route(party_id: int):
        record = party_service.update_party(party, party_id, request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": record.to_dict()})

    @bp.delete("/<int:party_id>")
    @require_auth
    @require_role(ROLE_ADMIN)
    def delete_route(party_id: int):
        party_service.delete_party(party, party_id)
        return jsonify({"success": True, "message": f"{party.label} deleted"})

    return bp


suppliers_bp = party_blueprint("suppliers", SUPPLIERS, entities.SUPPLIERS)
customers_bp = party_blueprint("customers", CUSTOMERS, entities.CUSTOMERS)
