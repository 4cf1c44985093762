# Overview: Flask API route for the dashboard recap; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_role
from ..listing import list_params_from_request
from ..models.auth import ROLE_VIEWER
from ..services import dashboard_service
from ..services.dashboard_service import RecapQuery
from ..time_utils import parse_range_bound


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/recap")
@require_auth
@require_role(ROLE_VIEWER)
def recap_route():
    """
    Summary counters plus the merged stock ledger.

    Query parameters:
    - from, to: optional date bounds (yyyy-MM-dd, dd-MM-yyyy or ISO datetime),
      each inclusive and applied on its own; they never affect the summary
    - search: substring over the whole row
    - sortField: date, partNumber, productName, source, stockIn, stockOut,
      destination, stock, remarks (anything else -> date descending)
    - sortOrder: asc | desc (default desc)
    - page, limit
    """
    params = list_params_from_request()

    query = RecapQuery(
        date_from=parse_range_bound(request.args.get("from")),
        date_to=parse_range_bound(request.args.get("to")),
        search=params.search,
        sort_field=params.sort_field or "date",
        sort_order="asc" if params.sort_order == "asc" else "desc",
        page=params.page,
        limit=params.limit,
    )

    result = dashboard_service.recap(query)
    return jsonify({"success": True, **result})
