# Overview: Flask API routes for item-level reports; parses input and returns JSON responses.

"""
Report Routes

One row per transaction item (incoming / outgoing) or per product
request, with the same list contract as every other table.

SECURITY: Requires authentication (viewer or above).
"""

from flask import Blueprint
from sqlalchemy.orm import joinedload

from ..decorators import require_auth, require_role
from ..extensions import db
from ..filtering.entities import INCOMING_REPORT, OUTGOING_REPORT, REQUESTS
from ..listing import fetch_page, list_params_from_request, list_response
from ..models import (
    IncomingTransaction,
    IncomingTransactionItem,
    OutgoingTransaction,
    OutgoingTransactionItem,
    Product,
    ProductRequest,
)
from ..models.auth import ROLE_VIEWER
from ..services import report_service, request_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/incoming")
@require_auth
@require_role(ROLE_VIEWER)
def incoming_report_route():
    params = list_params_from_request()
    query = db.session.query(IncomingTransactionItem).options(
        joinedload(IncomingTransactionItem.product).joinedload(Product.category),
        joinedload(IncomingTransactionItem.incoming_transaction).joinedload(IncomingTransaction.supplier),
        joinedload(IncomingTransactionItem.incoming_transaction).joinedload(IncomingTransaction.warehouse),
    )
    page = fetch_page(query, INCOMING_REPORT, params)
    return list_response(page, params, report_service.incoming_row)


@reports_bp.get("/outgoing")
@require_auth
@require_role(ROLE_VIEWER)
def outgoing_report_route():
    params = list_params_from_request()
    query = db.session.query(OutgoingTransactionItem).options(
        joinedload(OutgoingTransactionItem.product).joinedload(Product.category),
        joinedload(OutgoingTransactionItem.outgoing_transaction).joinedload(OutgoingTransaction.customer),
        joinedload(OutgoingTransactionItem.outgoing_transaction).joinedload(OutgoingTransaction.warehouse),
    )
    page = fetch_page(query, OUTGOING_REPORT, params)
    return list_response(page, params, report_service.outgoing_row)


@reports_bp.get("/requests")
@require_auth
@require_role(ROLE_VIEWER)
def requests_report_route():
    params = list_params_from_request()
    page = fetch_page(db.session.query(ProductRequest), REQUESTS, params)
    return list_response(page, params, request_service.report_row)
