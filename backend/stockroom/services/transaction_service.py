# Overview: Service-layer operations for incoming/outgoing stock transactions; header+items lifecycle and stock posting.

"""
Transaction Service

LIFECYCLE (both directions):
1. Draft: header and items editable, stock untouched
2. Done: stock posted (stock_service), items frozen; only the date and
   notes can still change
3. Delete: Draft rows simply go away; Done rows first reverse their
   stock effect

A transaction may be created directly as Done, which posts immediately.

DESIGN:
- Incoming requires a supplier; outgoing requires a customer and a warehouse
- Item unit price defaults to the product's current unit price
- totalItems = sum of quantities, totalValue = sum of quantity * unitPrice
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

from ..extensions import db
from ..models import (
    Customer,
    IncomingTransaction,
    IncomingTransactionItem,
    OutgoingTransaction,
    OutgoingTransactionItem,
    Product,
    Supplier,
    Warehouse,
)
from ..models.transactions import STATUS_DONE, STATUS_DRAFT, TRANSACTION_STATUSES
from ..time_utils import to_dmy
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)
from . import stock_service


class TransactionStateError(ConflictError):
    """Raised when an operation is invalid for the transaction's status."""
    pass


@dataclass(frozen=True)
class Flow:
    label: str
    model: type
    item_model: type
    header_policy: ModelValidationPolicy
    item_policy: ModelValidationPolicy
    party_model: type
    party_key: str
    post: Callable
    rollback: Callable


INCOMING = Flow(
    label="Incoming transaction",
    model=IncomingTransaction,
    item_model=IncomingTransactionItem,
    header_policy=ModelValidationPolicy(
        fields={
            "transactionDate": "transaction_date",
            "supplierId": "supplier_id",
            "warehouseId": "warehouse_id",
            "notes": "notes",
            "status": "status",
        },
        required_on_create=frozenset({"supplierId", "transactionDate"}),
        labels={"transactionDate": "Transaction date", "supplierId": "Supplier", "warehouseId": "Warehouse"},
    ),
    item_policy=ModelValidationPolicy(
        fields={"productId": "product_id", "quantity": "quantity", "unitPrice": "unit_price", "notes": "notes"},
        required_on_create=frozenset({"productId", "quantity"}),
        labels={"productId": "Product", "quantity": "Quantity", "unitPrice": "Unit price"},
    ),
    party_model=Supplier,
    party_key="supplier_id",
    post=stock_service.post_incoming,
    rollback=stock_service.rollback_incoming,
)

OUTGOING = Flow(
    label="Outgoing transaction",
    model=OutgoingTransaction,
    item_model=OutgoingTransactionItem,
    header_policy=ModelValidationPolicy(
        fields={
            "transactionDate": "transaction_date",
            "customerId": "customer_id",
            "warehouseId": "warehouse_id",
            "sourceLocation": "source_location",
            "notes": "notes",
            "status": "status",
        },
        required_on_create=frozenset({"customerId", "warehouseId", "transactionDate"}),
        labels={"transactionDate": "Transaction date", "customerId": "Customer", "warehouseId": "Warehouse"},
    ),
    item_policy=ModelValidationPolicy(
        fields={
            "productId": "product_id",
            "quantity": "quantity",
            "unitPrice": "unit_price",
            "destination": "destination",
            "notes": "notes",
        },
        required_on_create=frozenset({"productId", "quantity"}),
        labels={"productId": "Product", "quantity": "Quantity", "unitPrice": "Unit price"},
    ),
    party_model=Customer,
    party_key="customer_id",
    post=stock_service.post_outgoing,
    rollback=stock_service.rollback_outgoing,
)


def get_transaction(flow: Flow, transaction_id: int):
    transaction = db.session.get(flow.model, transaction_id)
    if not transaction:
        raise NotFoundError(f"{flow.label} not found")
    return transaction


def _validate_header(flow: Flow, payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=flow.model, payload=payload, policy=flow.header_policy, partial=partial)

    if "status" in patch and patch["status"] not in TRANSACTION_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(TRANSACTION_STATUSES)}")

    party_id = patch.get(flow.party_key)
    if party_id is not None and not db.session.get(flow.party_model, party_id):
        raise ValidationError(f"{flow.party_model.__name__} not found")

    warehouse_id = patch.get("warehouse_id")
    if warehouse_id is not None and not db.session.get(Warehouse, warehouse_id):
        raise ValidationError("Warehouse not found")
    return patch


def _build_items(flow: Flow, raw_items) -> list:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one item is required")

    items = []
    for index, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index}: expected an object")
        try:
            patch = validate_payload(model=flow.item_model, payload=raw, policy=flow.item_policy, partial=False)
        except ValidationError as e:
            raise ValidationError(f"Item {index}: {e}") from e

        if patch["quantity"] <= 0:
            raise ValidationError(f"Item {index}: Quantity must be greater than 0")

        product = db.session.get(Product, patch["product_id"])
        if not product:
            raise ValidationError(f"Item {index}: Product not found")

        unit_price = patch.get("unit_price")
        if unit_price is None:
            unit_price = product.unit_price or Decimal("0")
        if unit_price < 0:
            raise ValidationError(f"Item {index}: Unit price must be >= 0")

        patch["unit_price"] = unit_price
        patch["total_price"] = unit_price * patch["quantity"]
        items.append(flow.item_model(**patch))
    return items


def _recompute_totals(transaction) -> None:
    transaction.total_items = sum(item.quantity for item in transaction.items)
    transaction.total_value = sum((Decimal(item.total_price) for item in transaction.items), Decimal("0"))


def create_transaction(flow: Flow, payload: dict, *, user_id: int | None = None):
    """
    Create a transaction with its items. Posts stock when created as Done.

    Raises:
        ValidationError: missing/invalid header or items
        InsufficientStockError: outgoing Done with not enough stock
    """
    payload = payload or {}
    patch = _validate_header(flow, payload, partial=False)
    patch.setdefault("status", STATUS_DRAFT)

    transaction = flow.model(created_by_id=user_id, **patch)
    transaction.items = _build_items(flow, payload.get("items"))
    _recompute_totals(transaction)

    db.session.add(transaction)
    try:
        db.session.flush()
        if transaction.status == STATUS_DONE:
            flow.post(transaction, user_id=user_id)
    except ConflictError:
        db.session.rollback()
        raise
    db.session.commit()
    return transaction


def update_transaction(flow: Flow, transaction_id: int, payload: dict, *, user_id: int | None = None):
    """
    Draft: header fields and (optionally) the full item list are replaced;
    moving status to Done posts stock.
    Done: only transactionDate and notes are applied, everything else is ignored.
    """
    transaction = get_transaction(flow, transaction_id)
    payload = payload or {}

    if transaction.is_done:
        limited = {k: payload[k] for k in ("transactionDate", "notes") if k in payload}
        patch = _validate_header(flow, limited, partial=True)
        if "transaction_date" in patch and patch["transaction_date"] is None:
            raise ValidationError("Transaction date is required")
        for key, value in patch.items():
            setattr(transaction, key, value)
        db.session.commit()
        return transaction

    patch = _validate_header(flow, payload, partial=True)
    becoming_done = patch.get("status") == STATUS_DONE
    for key, value in patch.items():
        setattr(transaction, key, value)

    if "items" in payload:
        transaction.items = _build_items(flow, payload.get("items"))
        _recompute_totals(transaction)

    try:
        db.session.flush()
        if becoming_done:
            flow.post(transaction, user_id=user_id)
    except ConflictError:
        db.session.rollback()
        raise
    db.session.commit()
    return transaction


def mark_done(flow: Flow, transaction_id: int, *, user_id: int | None = None):
    transaction = get_transaction(flow, transaction_id)
    if transaction.is_done:
        raise TransactionStateError(f"{flow.label} is already Done")

    transaction.status = STATUS_DONE
    try:
        flow.post(transaction, user_id=user_id)
    except ConflictError:
        db.session.rollback()
        raise
    db.session.commit()
    return transaction


def delete_transaction(flow: Flow, transaction_id: int, *, user_id: int | None = None) -> None:
    transaction = get_transaction(flow, transaction_id)
    try:
        if transaction.is_done:
            flow.rollback(transaction, user_id=user_id)
        db.session.delete(transaction)
        db.session.flush()
    except ConflictError:
        db.session.rollback()
        raise
    db.session.commit()


def incoming_row(transaction: IncomingTransaction) -> dict:
    return {
        "id": transaction.id,
        "transactionDate": to_dmy(transaction.transaction_date),
        "supplier": transaction.supplier.name if transaction.supplier else "-",
        "warehouse": transaction.warehouse.name if transaction.warehouse else "-",
        "notes": transaction.notes or "-",
        "submitStatus": transaction.status,
        "totalItems": transaction.total_items,
        "totalValue": float(transaction.total_value or 0),
    }


def outgoing_row(transaction: OutgoingTransaction) -> dict:
    return {
        "id": transaction.id,
        "transactionDate": to_dmy(transaction.transaction_date),
        "customer": transaction.customer.name if transaction.customer else "-",
        "warehouse": transaction.warehouse.name if transaction.warehouse else "-",
        "sourceLocation": transaction.source_location or "-",
        "notes": transaction.notes or "-",
        "submitStatus": transaction.status,
        "totalItems": transaction.total_items,
        "totalValue": float(transaction.total_value or 0),
    }
