from __future__ import annotations

from sqlalchemy import case
from sqlalchemy.ext.hybrid import hybrid_property

from ..extensions import db
from stockroom.time_utils import to_utc_z, to_ymd
from .catalog import money


REQUEST_PENDING = "Pending"
REQUEST_PARTIAL = "Partial"
REQUEST_FULFILLED = "Fulfilled"


class ProductRequest(db.Model):
    """
    A store's request for an item, possibly not yet in the catalog.

    requested_item and supplier are free text. status is derived from the
    two quantities and is never stored; the SQL form lets list filters
    and the dashboard counter use the same rule.
    """
    __tablename__ = "product_requests"
    __table_args__ = (
        db.Index("ix_product_requests_request_date", "request_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    requested_item = db.Column(db.String(255), nullable=False)
    requested_quantity = db.Column(db.Integer, nullable=False)
    fulfilled_quantity = db.Column(db.Integer, nullable=False, default=0)
    request_date = db.Column(db.Date, nullable=False)
    fulfilled_date = db.Column(db.Date, nullable=True)
    store = db.Column(db.String(255), nullable=False)
    supplier = db.Column(db.String(255), nullable=True)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @hybrid_property
    def status(self) -> str:
        fulfilled = self.fulfilled_quantity or 0
        if fulfilled <= 0:
            return REQUEST_PENDING
        if fulfilled < (self.requested_quantity or 0):
            return REQUEST_PARTIAL
        return REQUEST_FULFILLED

    @status.expression
    def status(cls):
        return case(
            (cls.fulfilled_quantity <= 0, REQUEST_PENDING),
            (cls.fulfilled_quantity < cls.requested_quantity, REQUEST_PARTIAL),
            else_=REQUEST_FULFILLED,
        )

    def __repr__(self) -> str:
        return f"<ProductRequest id={self.id} item={self.requested_item!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requestedItem": self.requested_item,
            "requestedQuantity": self.requested_quantity,
            "fulfilledQuantity": self.fulfilled_quantity,
            "requestDate": to_ymd(self.request_date),
            "fulfilledDate": to_ymd(self.fulfilled_date),
            "store": self.store,
            "supplier": self.supplier,
            "unitPrice": money(self.unit_price),
            "totalPrice": money(self.total_price),
            "notes": self.notes,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
