# Overview: Service-layer operations for warehouses.

from ..extensions import db
from ..models import IncomingTransaction, OutgoingTransaction, Warehouse
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, validate_payload


WAREHOUSE_POLICY = ModelValidationPolicy(
    fields={"name": "name", "address": "address", "status": "status"},
    required_on_create=frozenset({"name"}),
    labels={"name": "Warehouse name", "address": "Address", "status": "Status"},
)


def get_warehouse(warehouse_id: int) -> Warehouse:
    warehouse = db.session.get(Warehouse, warehouse_id)
    if not warehouse:
        raise NotFoundError("Warehouse not found")
    return warehouse


def create_warehouse(payload: dict) -> Warehouse:
    patch = validate_payload(model=Warehouse, payload=payload, policy=WAREHOUSE_POLICY, partial=False)
    warehouse = Warehouse(**patch)
    db.session.add(warehouse)
    db.session.commit()
    return warehouse


def update_warehouse(warehouse_id: int, payload: dict) -> Warehouse:
    warehouse = get_warehouse(warehouse_id)
    patch = validate_payload(model=Warehouse, payload=payload, policy=WAREHOUSE_POLICY, partial=True)
    for key, value in patch.items():
        setattr(warehouse, key, value)
    db.session.commit()
    return warehouse


def delete_warehouse(warehouse_id: int) -> None:
    """Warehouses named by any transaction are kept."""
    warehouse = get_warehouse(warehouse_id)
    in_use = (
        db.session.query(IncomingTransaction.id).filter_by(warehouse_id=warehouse.id).first()
        or db.session.query(OutgoingTransaction.id).filter_by(warehouse_id=warehouse.id).first()
    )
    if in_use:
        raise ConflictError("Cannot delete warehouse with existing transactions")
    db.session.delete(warehouse)
    db.session.commit()
