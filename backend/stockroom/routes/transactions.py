# Overview: Flask API routes for incoming/outgoing transactions; parses input and returns JSON responses.

"""
Transaction Routes

    GET    /api/<direction>-transactions              list (dd-MM-yyyy dates)
    POST   /api/<direction>-transactions              create (Draft or Done)
    GET    /api/<direction>-transactions/<id>         header + items
    PUT    /api/<direction>-transactions/<id>         edit (Done: date/notes only)
    POST   /api/<direction>-transactions/<id>/done    Draft -> Done, posts stock
    DELETE /api/<direction>-transactions/<id>         Done rows roll stock back

SECURITY: reads require viewer, writes require staff, deletes require admin.
Insufficient stock answers 409.
"""

from typing import Callable

from flask import Blueprint, request, jsonify
from sqlalchemy.orm import joinedload

from ..decorators import current_user_id, require_auth, require_role
from ..extensions import db
from ..filtering import entities
from ..filtering.translator import EntityQuery
from ..listing import fetch_page, list_params_from_request, list_response
from ..models.auth import ROLE_ADMIN, ROLE_STAFF, ROLE_VIEWER
from ..services import transaction_service
from ..services.transaction_service import INCOMING, OUTGOING, Flow


def transaction_blueprint(
    name: str,
    flow: Flow,
    entity: EntityQuery,
    row: Callable,
    eager: tuple,
) -> Blueprint:
    bp = Blueprint(name, __name__, url_prefix=f"/api/{name}")

    @bp.get("")
    @require_auth
    @require_role(ROLE_VIEWER)
    def list_route():
        """Default order: transactionDate descending."""
        params = list_params_from_request()
        query = db.session.query(flow.model).options(*(joinedload(rel) for rel in eager))
        page = fetch_page(query, entity, params)
        return list_response(page, params, row)

    @bp.post("")
    @require_auth
    @require_role(ROLE_STAFF)
    def create_route():
        transaction = transaction_service.create_transaction(
            flow, request.get_json(silent=True) or {}, user_id=current_user_id()
        )
        return jsonify({"success": True, "data": transaction.to_dict()}), 201

    @bp.get("/<int:transaction_id>")
    @require_auth
    @require_role(ROLE_VIEWER)
    def get_route(transaction_id: int):
        transaction = transaction_service.get_transaction(flow, transaction_id)
        return jsonify({"success": True, "data": transaction.to_dict()})

    @bp.put("/<int:transaction_id>")
    @require_auth
    @require_role(ROLE_STAFF)
    def update_route(transaction_id: int):
        transaction = transaction_service.update_transaction(
            flow, transaction_id, request.get_json(silent=True) or {}, user_id=current_user_id()
        )
        return jsonify({"success": True, "data": transaction.to_dict()})

    @bp.post("/<int:transaction_id>/done")
    @require_auth
    @require_role(ROLE_STAFF)
    def done_route(transaction_id: int):
        transaction = transaction_service.mark_done(flow, transaction_id, user_id=current_user_id())
        return jsonify({"success": True, "data": transaction.to_dict()})

    @bp.delete("/<int:transaction_id>")
    @require_auth
    @require_role(ROLE_ADMIN)
    def delete_route(transaction_id: int):
        transaction_service.delete_transaction(flow, transaction_id, user_id=current_user_id())
        return jsonify({"success": True, "message": f"{flow.label} deleted"})

    return bp


incoming_bp = transaction_blueprint(
    "incoming-transactions",
    INCOMING,
    entities.INCOMING_TRANSACTIONS,
    transaction_service.incoming_row,
    eager=(INCOMING.model.supplier, INCOMING.model.warehouse),
)

outgoing_bp = transaction_blueprint(
    "outgoing-transactions",
    OUTGOING,
    entities.OUTGOING_TRANSACTIONS,
    transaction_service.outgoing_row,
    eager=(OUTGOING.model.customer, OUTGOING.model.warehouse),
)
