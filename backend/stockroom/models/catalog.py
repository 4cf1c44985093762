from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


def money(value) -> float:
    """Numeric -> JSON number (0.0 for NULL)."""
    return float(value) if value is not None else 0.0


class ProductCategory(db.Model):
    """
    Product grouping.

    Products point at categories through a nullable category_id with no
    database-level cascade. Deleting a category that still has products is
    refused by category_service, not by a constraint.
    """
    __tablename__ = "product_categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    products = db.relationship("Product", back_populates="category", lazy="select")

    def __repr__(self) -> str:
        return f"<ProductCategory id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "categoryName": self.name,
            "description": self.description,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Stocked item.

    stock is the on-hand quantity. Transaction posting moves it through
    stock_service, which writes a StockMovement row per change.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    card_number = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    part_number = db.Column(db.String(64), nullable=True, unique=True)
    description = db.Column(db.Text, nullable=True)

    stock = db.Column(db.Integer, nullable=False, default=0)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    reorder_level = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default="active")

    category_id = db.Column(db.Integer, db.ForeignKey("product_categories.id"), nullable=True, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("ProductCategory", back_populates="products")
    supplier = db.relationship("Supplier", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    @property
    def is_low_stock(self) -> bool:
        return (self.reorder_level or 0) > 0 and (self.stock or 0) < self.reorder_level

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cardNumber": self.card_number,
            "productName": self.name,
            "partNumber": self.part_number,
            "description": self.description,
            "stock": self.stock,
            "currentStock": self.stock,
            "unitPrice": money(self.unit_price),
            "reorderLevel": self.reorder_level,
            "status": self.status,
            "categoryId": self.category_id,
            "category": self.category.name if self.category else None,
            "supplierId": self.supplier_id,
            "supplier": self.supplier.name if self.supplier else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Warehouse(db.Model):
    __tablename__ = "warehouses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(32), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Warehouse id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
