# Overview: Service-layer operations for suppliers and customers; encapsulates business logic and database work.

"""
Supplier / Customer Service

WHY: Suppliers and customers are the two trading parties. They share one
shape (name, phone, email, address, contact person, notes, status) and
one set of rules, so one service handles both through a Party profile.

DESIGN:
- Single create requires name, phone and address
- Bulk create takes the same records as an array; no uniqueness rule
  exists for parties, so nothing is skipped
- A party referenced by a transaction cannot be deleted; products that
  name a supplier are detached instead (weak reference)
"""

from dataclasses import dataclass

from ..extensions import db
from ..models import Customer, IncomingTransaction, OutgoingTransaction, Product, Supplier
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)
from .bulk import insert_in_batches, prepare_rows


@dataclass(frozen=True)
class Party:
    model: type
    label: str
    display_key: str
    policy: ModelValidationPolicy
    transaction_model: type
    transaction_fk: str


def _policy(display_key: str, label: str) -> ModelValidationPolicy:
    return ModelValidationPolicy(
        fields={
            display_key: "name",
            "phoneNumber": "phone",
            "email": "email",
            "address": "address",
            "contactPerson": "contact_person",
            "notes": "notes",
            "status": "status",
        },
        required_on_create=frozenset({display_key, "phoneNumber", "address"}),
        labels={
            display_key: f"{label} name",
            "phoneNumber": "Phone number",
            "address": "Address",
            "contactPerson": "Contact person",
        },
    )


SUPPLIERS = Party(
    model=Supplier,
    label="Supplier",
    display_key="supplierName",
    policy=_policy("supplierName", "Supplier"),
    transaction_model=IncomingTransaction,
    transaction_fk="supplier_id",
)

CUSTOMERS = Party(
    model=Customer,
    label="Customer",
    display_key="customerName",
    policy=_policy("customerName", "Customer"),
    transaction_model=OutgoingTransaction,
    transaction_fk="customer_id",
)


def _normalize(party: Party, payload: dict) -> dict:
    """Accept plain name/phone keys (older clients, spreadsheets)."""
    payload = dict(payload or {})
    if party.display_key not in payload and "name" in payload:
        payload[party.display_key] = payload.pop("name")
    if "phoneNumber" not in payload and "phone" in payload:
        payload["phoneNumber"] = payload.pop("phone")
    return payload


def _validated(party: Party, payload: dict, *, partial: bool) -> dict:
    if payload is not None and not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    patch = validate_payload(
        model=party.model,
        payload=_normalize(party, payload),
        policy=party.policy,
        partial=partial,
    )
    if not partial:
        patch.setdefault("status", "active")
    return patch


def get_party(party: Party, party_id: int):
    record = db.session.get(party.model, party_id)
    if not record:
        raise NotFoundError(f"{party.label} not found")
    return record


def list_row(record) -> dict:
    return {
        "id": record.id,
        "name": record.name,
        "phone": record.phone or "-",
        "email": record.email or "-",
        "address": record.address or "-",
        "contactPerson": record.contact_person or "-",
        "status": record.status,
        "createdAt": record.created_at.strftime("%Y-%m-%d") if record.created_at else "-",
    }


def create_party(party: Party, payload: dict):
    record = party.model(**_validated(party, payload, partial=False))
    db.session.add(record)
    db.session.commit()
    return record


def update_party(party: Party, party_id: int, payload: dict):
    record = get_party(party, party_id)
    for key, value in _validated(party, payload, partial=True).items():
        setattr(record, key, value)
    db.session.commit()
    return record


def _ensure_deletable(party: Party, ids: list[int]) -> None:
    fk = getattr(party.transaction_model, party.transaction_fk)
    used = db.session.query(fk).filter(fk.in_(ids)).first()
    if used:
        raise ConflictError(f"Cannot delete {party.label.lower()} with existing transactions")


def delete_party(party: Party, party_id: int) -> None:
    record = get_party(party, party_id)
    _ensure_deletable(party, [record.id])
    if party.model is Supplier:
        db.session.query(Product).filter(Product.supplier_id == record.id).update(
            {Product.supplier_id: None}, synchronize_session=False
        )
    db.session.delete(record)
    db.session.commit()


def delete_many(party: Party, ids: list[int]) -> int:
    """Delete several parties at once; all-or-nothing. Returns deleted count."""
    if not ids:
        raise ValidationError("No valid IDs provided")
    _ensure_deletable(party, ids)
    if party.model is Supplier:
        db.session.query(Product).filter(Product.supplier_id.in_(ids)).update(
            {Product.supplier_id: None}, synchronize_session=False
        )
    deleted = (
        db.session.query(party.model)
        .filter(party.model.id.in_(ids))
        .delete()
    )
    db.session.commit()
    return deleted


def bulk_create(party: Party, rows: list) -> int:
    return insert_in_batches(
        prepare_rows(rows, lambda row: party.model(**_validated(party, row, partial=False))),
        label=party.label.lower(),
    )
