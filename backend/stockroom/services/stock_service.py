# Overview: Service-layer operations for stock levels; posts and reverses transaction effects with movement history.

"""
Stock Service

WHY: Product.stock is a running balance. Every change made by a
transaction writes a StockMovement with the before/after balance so the
history can be audited per product.

WHEN stock moves:
- incoming transaction reaches Done: +quantity per item
- outgoing transaction reaches Done: -quantity per item
- a Done transaction is deleted: the opposite change ("rollback")

INVARIANT: stock never goes below zero. Outgoing posting and incoming
rollback check every item first and change nothing if any product would
go negative.

Functions here flush but do not commit; the calling transaction service
owns the commit.
"""

from collections import defaultdict

from flask import current_app

from ..extensions import db
from ..models import Product, StockMovement
from ..models.transactions import MOVEMENT_INCOMING, MOVEMENT_OUTGOING, MOVEMENT_ROLLBACK
from ..validation import ConflictError


class InsufficientStockError(ConflictError):
    """Raised when a change would drive a product's stock below zero."""
    pass


def _totals_by_product(items) -> dict[int, int]:
    totals = defaultdict(int)
    for item in items:
        totals[item.product_id] += item.quantity
    return dict(totals)


def _load_products(product_ids) -> dict[int, Product]:
    # SQLite ignores FOR UPDATE; other backends lock the rows until commit.
    products = (
        db.session.query(Product)
        .filter(Product.id.in_(list(product_ids)))
        .with_for_update()
        .all()
    )
    return {p.id: p for p in products}


def _ensure_available(totals: dict[int, int], products: dict[int, Product]) -> None:
    for product_id, quantity in totals.items():
        product = products.get(product_id)
        if product is None:
            raise ConflictError(f"Product {product_id} no longer exists")
        if product.stock < quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {product.name}: available {product.stock}, requested {quantity}"
            )


def _move(
    product: Product,
    delta: int,
    *,
    movement_type: str,
    reference_type: str,
    reference_id: int,
    user_id: int | None,
    notes: str | None = None,
) -> StockMovement:
    previous = product.stock
    product.stock = previous + delta
    movement = StockMovement(
        product_id=product.id,
        movement_type=movement_type,
        quantity=abs(delta),
        previous_stock=previous,
        new_stock=product.stock,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
        created_by_id=user_id,
    )
    db.session.add(movement)
    return movement


def post_incoming(transaction, *, user_id: int | None = None) -> list[StockMovement]:
    """Add every item's quantity to stock."""
    products = _load_products({item.product_id for item in transaction.items})
    movements = []
    for item in transaction.items:
        product = products.get(item.product_id)
        if product is None:
            raise ConflictError(f"Product {item.product_id} no longer exists")
        movements.append(_move(
            product,
            item.quantity,
            movement_type=MOVEMENT_INCOMING,
            reference_type="incoming_transaction",
            reference_id=transaction.id,
            user_id=user_id,
            notes=f"Incoming transaction #{transaction.id}",
        ))
    db.session.flush()
    current_app.logger.info("Posted incoming transaction %s (%d items)", transaction.id, len(movements))
    return movements


def post_outgoing(transaction, *, user_id: int | None = None) -> list[StockMovement]:
    """Remove every item's quantity from stock; refuses if any product runs short."""
    totals = _totals_by_product(transaction.items)
    products = _load_products(totals)
    _ensure_available(totals, products)

    movements = [
        _move(
            products[item.product_id],
            -item.quantity,
            movement_type=MOVEMENT_OUTGOING,
            reference_type="outgoing_transaction",
            reference_id=transaction.id,
            user_id=user_id,
            notes=f"Outgoing transaction #{transaction.id}",
        )
        for item in transaction.items
    ]
    db.session.flush()
    current_app.logger.info("Posted outgoing transaction %s (%d items)", transaction.id, len(movements))
    return movements


def rollback_incoming(transaction, *, user_id: int | None = None) -> list[StockMovement]:
    """Undo a Done incoming transaction before it is deleted."""
    totals = _totals_by_product(transaction.items)
    products = _load_products(totals)
    _ensure_available(totals, products)

    movements = [
        _move(
            products[item.product_id],
            -item.quantity,
            movement_type=MOVEMENT_ROLLBACK,
            reference_type="incoming_transaction",
            reference_id=transaction.id,
            user_id=user_id,
            notes=f"Rollback of incoming transaction #{transaction.id}",
        )
        for item in transaction.items
    ]
    db.session.flush()
    return movements


def rollback_outgoing(transaction, *, user_id: int | None = None) -> list[StockMovement]:
    """Return a Done outgoing transaction's quantities to stock before it is deleted."""
    products = _load_products({item.product_id for item in transaction.items})
    movements = []
    for item in transaction.items:
        product = products.get(item.product_id)
        if product is None:
            continue
        movements.append(_move(
            product,
            item.quantity,
            movement_type=MOVEMENT_ROLLBACK,
            reference_type="outgoing_transaction",
            reference_id=transaction.id,
            user_id=user_id,
            notes=f"Rollback of outgoing transaction #{transaction.id}",
        ))
    db.session.flush()
    return movements
