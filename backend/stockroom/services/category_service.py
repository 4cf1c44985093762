# Overview: Service-layer operations for product categories; encapsulates business logic and database work.

"""
Category Service

Categories group products. The product side holds a nullable
category_id with no database cascade, so the in-use guard lives here:
a category cannot be deleted while any product still points at it.
"""

from sqlalchemy import func

from ..extensions import db
from ..models import Product, ProductCategory
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, ValidationError, validate_payload
from .bulk import insert_in_batches, prepare_rows


class CategoryInUseError(ValidationError):
    """Raised when deleting a category that products still reference."""
    pass


CATEGORY_POLICY = ModelValidationPolicy(
    fields={"categoryName": "name", "description": "description"},
    required_on_create=frozenset({"categoryName"}),
    labels={"categoryName": "Category name"},
)


def _normalize(payload: dict) -> dict:
    # Accept {"name": ...} from imports as well as {"categoryName": ...}
    payload = dict(payload or {})
    if "categoryName" not in payload and "name" in payload:
        payload["categoryName"] = payload.pop("name")
    return payload


def _name_taken(name: str, *, exclude_id: int | None = None) -> bool:
    query = db.session.query(ProductCategory.id).filter(func.lower(ProductCategory.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(ProductCategory.id != exclude_id)
    return query.first() is not None


def get_category(category_id: int) -> ProductCategory:
    category = db.session.get(ProductCategory, category_id)
    if not category:
        raise NotFoundError("Category not found")
    return category


def product_count(category_id: int) -> int:
    return db.session.query(func.count(Product.id)).filter(Product.category_id == category_id).scalar()


def product_counts(category_ids) -> dict[int, int]:
    """Products per category for a page of list rows, one grouped query."""
    ids = list(category_ids)
    if not ids:
        return {}
    rows = (
        db.session.query(Product.category_id, func.count(Product.id))
        .filter(Product.category_id.in_(ids))
        .group_by(Product.category_id)
        .all()
    )
    return {category_id: count for category_id, count in rows}


def category_detail(category_id: int) -> dict:
    category = get_category(category_id)
    products = (
        db.session.query(Product)
        .filter(Product.category_id == category.id)
        .order_by(Product.name.asc())
        .all()
    )
    data = category.to_dict()
    data["totalProducts"] = len(products)
    data["products"] = [
        {
            "id": p.id,
            "productName": p.name,
            "partNumber": p.part_number,
            "stock": p.stock,
        }
        for p in products
    ]
    return data


def create_category(payload: dict) -> ProductCategory:
    """
    Raises:
        ValidationError: "Category name is required"
        ConflictError: name already used (case-insensitive)
    """
    patch = validate_payload(
        model=ProductCategory, payload=_normalize(payload), policy=CATEGORY_POLICY, partial=False
    )
    if _name_taken(patch["name"]):
        raise ConflictError(f"Category '{patch['name']}' already exists")

    category = ProductCategory(**patch)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, payload: dict) -> ProductCategory:
    category = get_category(category_id)
    patch = validate_payload(
        model=ProductCategory, payload=_normalize(payload), policy=CATEGORY_POLICY, partial=True
    )
    if "name" in patch and _name_taken(patch["name"], exclude_id=category.id):
        raise ConflictError(f"Category '{patch['name']}' already exists")

    for key, value in patch.items():
        setattr(category, key, value)
    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    category = get_category(category_id)
    if product_count(category.id) > 0:
        raise CategoryInUseError("Cannot delete category with existing products")
    db.session.delete(category)
    db.session.commit()


def bulk_create_categories(rows: list) -> int:
    """
    Insert many categories; names that already exist (or repeat within
    the payload) are skipped. Returns the inserted count.
    """
    existing = {name.lower() for (name,) in db.session.query(ProductCategory.name).all()}

    def build(row):
        patch = validate_payload(
            model=ProductCategory, payload=_normalize(row), policy=CATEGORY_POLICY, partial=False
        )
        key = patch["name"].lower()
        if key in existing:
            return None
        existing.add(key)
        return ProductCategory(**patch)

    return insert_in_batches(prepare_rows(rows, build), label="category")
