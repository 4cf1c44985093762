# Overview: Service-layer operations for store product requests; quantities, pricing and fulfillment.

"""
Product Request Service

Requests are free-text asks from stores. Status is derived from the two
quantities (see ProductRequest.status) and is never written.

totalPrice is always recomputed as requestedQuantity * unitPrice.
"""

from decimal import Decimal

from ..extensions import db
from ..models import ProductRequest
from ..time_utils import to_dmy, to_ymd, today
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    require_non_negative,
    validate_payload,
)


REQUEST_POLICY = ModelValidationPolicy(
    fields={
        "requestedItem": "requested_item",
        "requestedQuantity": "requested_quantity",
        "fulfilledQuantity": "fulfilled_quantity",
        "requestDate": "request_date",
        "fulfilledDate": "fulfilled_date",
        "store": "store",
        "supplier": "supplier",
        "unitPrice": "unit_price",
        "notes": "notes",
    },
    required_on_create=frozenset({"requestedItem", "store", "requestDate", "requestedQuantity"}),
    labels={
        "requestedItem": "Requested item",
        "requestedQuantity": "Requested quantity",
        "fulfilledQuantity": "Fulfilled quantity",
        "requestDate": "Request date",
        "fulfilledDate": "Fulfilled date",
        "store": "Store",
        "unitPrice": "Unit price",
    },
)

_LABELS = {
    "requested_quantity": "Requested quantity",
    "fulfilled_quantity": "Fulfilled quantity",
    "unit_price": "Unit price",
}


def _validated(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=ProductRequest, payload=payload, policy=REQUEST_POLICY, partial=partial)
    require_non_negative(patch, "requested_quantity", "fulfilled_quantity", "unit_price", labels=_LABELS)
    return patch


def _reprice(product_request: ProductRequest) -> None:
    unit_price = Decimal(product_request.unit_price or 0)
    product_request.total_price = unit_price * (product_request.requested_quantity or 0)


def get_request(request_id: int) -> ProductRequest:
    product_request = db.session.get(ProductRequest, request_id)
    if not product_request:
        raise NotFoundError("Product request not found")
    return product_request


def list_row(product_request: ProductRequest) -> dict:
    return {
        "id": product_request.id,
        "requestedItem": product_request.requested_item,
        "requestedQuantity": product_request.requested_quantity,
        "fulfilledQuantity": product_request.fulfilled_quantity,
        "requestDate": to_ymd(product_request.request_date),
        "fulfilledDate": to_ymd(product_request.fulfilled_date) or "",
        "store": product_request.store,
        "unitPrice": float(product_request.unit_price or 0),
        "totalPrice": float(product_request.total_price or 0),
        "status": product_request.status,
    }


def report_row(product_request: ProductRequest) -> dict:
    """Row for the request report (dd-MM-yyyy dates)."""
    return {
        "id": product_request.id,
        "requestedItem": product_request.requested_item,
        "requestedQuantity": product_request.requested_quantity,
        "fulfilledQuantity": product_request.fulfilled_quantity,
        "requestDate": to_dmy(product_request.request_date),
        "fulfilledDate": to_dmy(product_request.fulfilled_date),
        "store": product_request.store,
        "unitPrice": float(product_request.unit_price or 0),
        "totalPrice": float(product_request.total_price or 0),
        "remarks": product_request.notes or "",
        "supplierLocation": product_request.supplier or "-",
        "status": product_request.status,
    }


def create_request(payload: dict) -> ProductRequest:
    """
    Raises:
        ValidationError: missing requestedItem/store/requestDate/requestedQuantity
            or negative quantities/prices
    """
    patch = _validated(payload, partial=False)
    patch.setdefault("fulfilled_quantity", 0)
    patch.setdefault("unit_price", Decimal("0.00"))

    product_request = ProductRequest(**patch)
    _reprice(product_request)
    db.session.add(product_request)
    db.session.commit()
    return product_request


def update_request(request_id: int, payload: dict) -> ProductRequest:
    product_request = get_request(request_id)
    patch = _validated(payload, partial=True)
    if "fulfilled_quantity" in patch and patch["fulfilled_quantity"] is None:
        patch["fulfilled_quantity"] = 0
    if "unit_price" in patch and patch["unit_price"] is None:
        patch["unit_price"] = Decimal("0.00")

    for key, value in patch.items():
        setattr(product_request, key, value)
    _reprice(product_request)
    db.session.commit()
    return product_request


def fulfill_request(request_id: int, quantity, *, fulfilled_date=None) -> ProductRequest:
    """Add a delivered quantity and stamp the fulfilled date (today by default)."""
    product_request = get_request(request_id)
    patch = validate_payload(
        model=ProductRequest,
        payload={"fulfilledQuantity": quantity, "fulfilledDate": fulfilled_date},
        policy=REQUEST_POLICY,
        partial=True,
    )
    added = patch.get("fulfilled_quantity")
    if added is None or added <= 0:
        raise ValidationError("Fulfilled quantity must be greater than 0")

    product_request.fulfilled_quantity = (product_request.fulfilled_quantity or 0) + added
    product_request.fulfilled_date = patch.get("fulfilled_date") or today()
    db.session.commit()
    return product_request


def delete_request(request_id: int) -> None:
    product_request = get_request(request_id)
    db.session.delete(product_request)
    db.session.commit()
