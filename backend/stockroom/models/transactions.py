from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z, to_ymd
from .catalog import money


STATUS_DRAFT = "Draft"
STATUS_DONE = "Done"
TRANSACTION_STATUSES = (STATUS_DRAFT, STATUS_DONE)

MOVEMENT_INCOMING = "incoming"
MOVEMENT_OUTGOING = "outgoing"
MOVEMENT_ROLLBACK = "rollback"


class IncomingTransaction(db.Model):
    """
    Goods received from a supplier.

    LIFECYCLE:
    1. Draft: header and items editable, stock untouched
    2. Done: stock incremented per item, items frozen
    Deleting a Done transaction reverses its stock effect.
    """
    __tablename__ = "incoming_transactions"
    __table_args__ = (
        db.Index("ix_incoming_transactions_date", "transaction_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_date = db.Column(db.Date, nullable=False)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=True, index=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=STATUS_DRAFT)

    total_items = db.Column(db.Integer, nullable=False, default=0)
    total_value = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier")
    warehouse = db.relationship("Warehouse")
    created_by = db.relationship("User")
    items = db.relationship(
        "IncomingTransactionItem",
        back_populates="incoming_transaction",
        cascade="all, delete-orphan",
        order_by="IncomingTransactionItem.id",
    )

    @property
    def is_done(self) -> bool:
        return self.status == STATUS_DONE

    def __repr__(self) -> str:
        return f"<IncomingTransaction id={self.id} status={self.status} date={self.transaction_date}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "transactionDate": to_ymd(self.transaction_date),
            "supplierId": self.supplier_id,
            "supplier": self.supplier.name if self.supplier else None,
            "warehouseId": self.warehouse_id,
            "warehouse": self.warehouse.name if self.warehouse else None,
            "notes": self.notes,
            "status": self.status,
            "totalItems": self.total_items,
            "totalValue": money(self.total_value),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class IncomingTransactionItem(db.Model):
    __tablename__ = "incoming_transaction_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    incoming_transaction_id = db.Column(
        db.Integer, db.ForeignKey("incoming_transactions.id"), nullable=False, index=True
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    incoming_transaction = db.relationship("IncomingTransaction", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "productName": self.product.name if self.product else None,
            "partNumber": self.product.part_number if self.product else None,
            "quantity": self.quantity,
            "unitPrice": money(self.unit_price),
            "totalPrice": money(self.total_price),
            "notes": self.notes,
        }


class OutgoingTransaction(db.Model):
    """
    Goods shipped to a customer. Same Draft -> Done lifecycle as incoming;
    posting decrements stock and refuses to go below zero.
    """
    __tablename__ = "outgoing_transactions"
    __table_args__ = (
        db.Index("ix_outgoing_transactions_date", "transaction_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_date = db.Column(db.Date, nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=True, index=True)
    source_location = db.Column(db.String(255), nullable=False, default="Main Warehouse")
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=STATUS_DRAFT)

    total_items = db.Column(db.Integer, nullable=False, default=0)
    total_value = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    customer = db.relationship("Customer")
    warehouse = db.relationship("Warehouse")
    created_by = db.relationship("User")
    items = db.relationship(
        "OutgoingTransactionItem",
        back_populates="outgoing_transaction",
        cascade="all, delete-orphan",
        order_by="OutgoingTransactionItem.id",
    )

    @property
    def is_done(self) -> bool:
        return self.status == STATUS_DONE

    def __repr__(self) -> str:
        return f"<OutgoingTransaction id={self.id} status={self.status} date={self.transaction_date}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "transactionDate": to_ymd(self.transaction_date),
            "customerId": self.customer_id,
            "customer": self.customer.name if self.customer else None,
            "warehouseId": self.warehouse_id,
            "warehouse": self.warehouse.name if self.warehouse else None,
            "sourceLocation": self.source_location,
            "notes": self.notes,
            "status": self.status,
            "totalItems": self.total_items,
            "totalValue": money(self.total_value),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OutgoingTransactionItem(db.Model):
    __tablename__ = "outgoing_transaction_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    outgoing_transaction_id = db.Column(
        db.Integer, db.ForeignKey("outgoing_transactions.id"), nullable=False, index=True
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    destination = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    outgoing_transaction = db.relationship("OutgoingTransaction", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "productName": self.product.name if self.product else None,
            "partNumber": self.product.part_number if self.product else None,
            "quantity": self.quantity,
            "unitPrice": money(self.unit_price),
            "totalPrice": money(self.total_price),
            "destination": self.destination,
            "notes": self.notes,
        }


class StockMovement(db.Model):
    """
    Append-only record of every stock change.

    previous_stock/new_stock capture the product row before and after the
    change; reference_type/reference_id point at the transaction that
    caused it.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    movement_type = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    previous_stock = db.Column(db.Integer, nullable=False)
    new_stock = db.Column(db.Integer, nullable=False)
    reference_type = db.Column(db.String(64), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("stock_movements", lazy="dynamic"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "movementType": self.movement_type,
            "quantity": self.quantity,
            "previousStock": self.previous_stock,
            "newStock": self.new_stock,
            "referenceType": self.reference_type,
            "referenceId": self.reference_id,
            "notes": self.notes,
            "createdById": self.created_by_id,
            "createdAt": to_utc_z(self.created_at),
        }
