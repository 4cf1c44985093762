# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Product Service

WHY: Products are the unit everything else counts. Part numbers are
unique when present so imports can skip rows already in the catalog.

DESIGN:
- category/supplier are optional weak references; ids are checked on
  write, and spreadsheet rows may name them instead of giving ids
- stock can be set on create/edit; transaction posting changes it
  through stock_service, which also records StockMovement rows
- a product with transaction history cannot be deleted
"""

from sqlalchemy import func

from ..extensions import db
from ..models import (
    IncomingTransactionItem,
    OutgoingTransactionItem,
    Product,
    ProductCategory,
    StockMovement,
    Supplier,
)
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    require_non_negative,
    validate_payload,
)
from .bulk import insert_in_batches, prepare_rows


PRODUCT_POLICY = ModelValidationPolicy(
    fields={
        "productName": "name",
        "cardNumber": "card_number",
        "partNumber": "part_number",
        "description": "description",
        "stock": "stock",
        "unitPrice": "unit_price",
        "reorderLevel": "reorder_level",
        "status": "status",
        "categoryId": "category_id",
        "supplierId": "supplier_id",
    },
    required_on_create=frozenset({"productName", "unitPrice"}),
    labels={
        "productName": "Product name",
        "cardNumber": "Card number",
        "partNumber": "Part number",
        "stock": "Stock",
        "unitPrice": "Unit price",
        "reorderLevel": "Reorder level",
        "categoryId": "Category",
        "supplierId": "Supplier",
    },
)

_LABELS = {"stock": "Stock", "unit_price": "Unit price", "reorder_level": "Reorder level"}


def _lookup_by_name(model, name, label: str) -> int:
    record = db.session.query(model).filter(func.lower(model.name) == str(name).strip().lower()).first()
    if not record:
        raise ValidationError(f"{label} '{name}' not found")
    return record.id


def _normalize(payload: dict) -> dict:
    """Accept category/supplier names in place of ids (spreadsheet rows)."""
    payload = dict(payload or {})
    if "name" in payload and "productName" not in payload:
        payload["productName"] = payload.pop("name")
    for name_key, id_key, model, label in (
        ("category", "categoryId", ProductCategory, "Category"),
        ("supplier", "supplierId", Supplier, "Supplier"),
    ):
        name = payload.get(name_key)
        if payload.get(id_key) in (None, "") and isinstance(name, str) and name.strip() and name.strip() != "-":
            payload[id_key] = _lookup_by_name(model, name, label)
    return payload


def _check_references(patch: dict) -> None:
    if patch.get("category_id") is not None and not db.session.get(ProductCategory, patch["category_id"]):
        raise ValidationError("Category not found")
    if patch.get("supplier_id") is not None and not db.session.get(Supplier, patch["supplier_id"]):
        raise ValidationError("Supplier not found")


def _part_number_taken(part_number: str, *, exclude_id: int | None = None) -> bool:
    query = db.session.query(Product.id).filter(Product.part_number == part_number)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def _validated(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Product, payload=_normalize(payload), policy=PRODUCT_POLICY, partial=partial)
    require_non_negative(patch, "stock", "unit_price", "reorder_level", labels=_LABELS)
    _check_references(patch)
    return patch


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product


def list_row(product: Product) -> dict:
    """Flattened row for the product table."""
    return {
        "id": product.id,
        "cardNumber": product.card_number or "-",
        "productName": product.name,
        "category": product.category.name if product.category else "-",
        "partNumber": product.part_number or "-",
        "stock": product.stock,
        "unitPrice": float(product.unit_price or 0),
        "reorderLevel": product.reorder_level,
        "supplier": product.supplier.name if product.supplier else "-",
        "status": product.status,
        "lowStock": product.is_low_stock,
        "createdAt": product.created_at.strftime("%Y-%m-%d") if product.created_at else "-",
    }


def create_product(payload: dict) -> Product:
    """
    Raises:
        ValidationError: missing productName/unitPrice, negative numbers,
            unknown category/supplier
        ConflictError: part number already used
    """
    patch = _validated(payload, partial=False)
    if patch.get("part_number") and _part_number_taken(patch["part_number"]):
        raise ConflictError(f"Part number '{patch['part_number']}' already exists")

    product = Product(**patch)
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, payload: dict) -> Product:
    product = get_product(product_id)
    patch = _validated(payload, partial=True)
    if patch.get("part_number") and _part_number_taken(patch["part_number"], exclude_id=product.id):
        raise ConflictError(f"Part number '{patch['part_number']}' already exists")

    for key, value in patch.items():
        setattr(product, key, value)
    db.session.commit()
    return product


def delete_product(product_id: int) -> None:
    product = get_product(product_id)

    in_use = (
        db.session.query(IncomingTransactionItem.id).filter_by(product_id=product.id).first()
        or db.session.query(OutgoingTransactionItem.id).filter_by(product_id=product.id).first()
    )
    if in_use:
        raise ConflictError("Cannot delete product with transaction history")

    db.session.query(StockMovement).filter_by(product_id=product.id).delete()
    db.session.delete(product)
    db.session.commit()


def bulk_create_products(rows: list) -> int:
    """
    Insert many products in batches. Rows whose part number is already in
    the catalog (or earlier in the same payload) are skipped.
    """
    taken = {pn for (pn,) in db.session.query(Product.part_number).filter(Product.part_number.isnot(None))}

    def build(row):
        patch = _validated(row, partial=False)
        part_number = patch.get("part_number")
        if part_number:
            if part_number in taken:
                return None
            taken.add(part_number)
        return Product(**patch)

    return insert_in_batches(prepare_rows(rows, build), label="product")


def low_stock_products() -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.reorder_level > 0, Product.stock < Product.reorder_level)
        .order_by(Product.stock.asc(), Product.id.asc())
        .all()
    )


def stock_movements(product_id: int, *, limit: int = 100) -> list[StockMovement]:
    get_product(product_id)
    return (
        db.session.query(StockMovement)
        .filter(StockMovement.product_id == product_id)
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .limit(limit)
        .all()
    )
