# Overview: Dashboard recap; catalog summary counters plus one merged stock ledger over items and requests.

"""
Dashboard Service

WHY: The dashboard shows one table mixing three unrelated sources
(incoming items, outgoing items, store requests). They share no query
shape, so rows are fetched per source, mapped to a common row, merged in
memory, then searched, sorted and sliced here.

ROW SHAPE:
    id, date, partNumber, productName, source, stockIn, stockOut,
    destination, stock, remarks

ids are prefixed ("in-", "out-", "req-") so rows from different sources
never collide.

SEARCH: case-insensitive substring over the JSON text of the whole row,
so any column (including ids and numbers) can match.

The summary counters always cover the whole catalog; from/to only bound
the ledger.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from functools import cmp_to_key
from typing import Optional

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import (
    IncomingTransaction,
    IncomingTransactionItem,
    OutgoingTransaction,
    OutgoingTransactionItem,
    Product,
    ProductRequest,
)
from ..models.requests import REQUEST_PENDING
from ..time_utils import to_ymd


SORTABLE_KEYS = frozenset({
    "date",
    "partNumber",
    "productName",
    "source",
    "stockIn",
    "stockOut",
    "destination",
    "stock",
    "remarks",
})


@dataclass
class RecapQuery:
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: str = ""
    sort_field: str = "date"
    sort_order: str = "desc"
    page: int = 1
    limit: int = 10


def summary() -> dict:
    """Counters over the full product catalog and all requests."""
    products = db.session.query(Product).all()

    total_value = sum(
        (Decimal(p.stock or 0) * Decimal(p.unit_price or 0) for p in products),
        Decimal("0"),
    )
    pending = (
        db.session.query(ProductRequest)
        .filter(ProductRequest.status == REQUEST_PENDING)
        .count()
    )
    return {
        "totalProducts": len(products),
        "lowStockItems": sum(1 for p in products if p.is_low_stock),
        "totalValue": f"{total_value:.2f}",
        "pendingRequests": pending,
    }


def _bounded(query, column, date_from: Optional[date], date_to: Optional[date]):
    if date_from is not None:
        query = query.filter(column >= date_from)
    if date_to is not None:
        query = query.filter(column <= date_to)
    return query


def incoming_rows(date_from=None, date_to=None) -> list[dict]:
    query = (
        db.session.query(IncomingTransactionItem)
        .join(IncomingTransactionItem.incoming_transaction)
        .options(
            joinedload(IncomingTransactionItem.product),
            joinedload(IncomingTransactionItem.incoming_transaction).joinedload(IncomingTransaction.supplier),
            joinedload(IncomingTransactionItem.incoming_transaction).joinedload(IncomingTransaction.warehouse),
        )
    )
    query = _bounded(query, IncomingTransaction.transaction_date, date_from, date_to)

    rows = []
    for item in query.all():
        header = item.incoming_transaction
        rows.append({
            "id": f"in-{item.id}",
            "date": to_ymd(header.transaction_date),
            "partNumber": item.product.part_number or "-",
            "productName": item.product.name,
            "source": header.supplier.name if header.supplier else "-",
            "stockIn": item.quantity,
            "stockOut": 0,
            "destination": header.warehouse.name if header.warehouse else "-",
            "stock": item.product.stock,
            "remarks": item.notes or "",
        })
    return rows


def outgoing_rows(date_from=None, date_to=None) -> list[dict]:
    query = (
        db.session.query(OutgoingTransactionItem)
        .join(OutgoingTransactionItem.outgoing_transaction)
        .options(
            joinedload(OutgoingTransactionItem.product),
            joinedload(OutgoingTransactionItem.outgoing_transaction).joinedload(OutgoingTransaction.customer),
            joinedload(OutgoingTransactionItem.outgoing_transaction).joinedload(OutgoingTransaction.warehouse),
        )
    )
    query = _bounded(query, OutgoingTransaction.transaction_date, date_from, date_to)

    rows = []
    for item in query.all():
        header = item.outgoing_transaction
        if header.warehouse:
            source = header.warehouse.name
        else:
            source = header.source_location or "-"
        if header.customer:
            destination = header.customer.name
        else:
            destination = item.destination or "-"
        rows.append({
            "id": f"out-{item.id}",
            "date": to_ymd(header.transaction_date),
            "partNumber": item.product.part_number or "-",
            "productName": item.product.name,
            "source": source,
            "stockIn": 0,
            "stockOut": item.quantity,
            "destination": destination,
            "stock": item.product.stock,
            "remarks": item.notes or "",
        })
    return rows


def request_rows(date_from=None, date_to=None) -> list[dict]:
    query = _bounded(db.session.query(ProductRequest), ProductRequest.request_date, date_from, date_to)
    return [
        {
            "id": f"req-{r.id}",
            "date": to_ymd(r.request_date),
            "partNumber": "-",
            "productName": r.requested_item,
            "source": r.store,
            "stockIn": r.fulfilled_quantity,
            "stockOut": 0,
            "destination": r.supplier or "-",
            "stock": r.fulfilled_quantity,
            "remarks": r.notes or "",
        }
        for r in query.all()
    ]


def search_rows(rows: list[dict], term: str) -> list[dict]:
    if not term:
        return rows
    needle = term.lower()
    # Compact separators: a row reads as {"stockIn":7,...}
    return [
        r for r in rows
        if needle in json.dumps(r, ensure_ascii=False, separators=(",", ":")).lower()
    ]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _compare(field: str):
    def compare(a: dict, b: dict) -> int:
        av, bv = a.get(field), b.get(field)
        if _is_number(av) and _is_number(bv):
            return (av > bv) - (av < bv)
        left = "" if av is None else str(av)
        right = "" if bv is None else str(bv)
        return (left > right) - (left < right)
    return compare


def sort_rows(rows: list[dict], sort_field: Optional[str], sort_order: Optional[str]) -> list[dict]:
    """
    Known keys: numbers compare numerically, anything else by string
    form; reversed for desc. Unknown keys: date string descending.
    """
    if sort_field in SORTABLE_KEYS:
        ordered = sorted(rows, key=cmp_to_key(_compare(sort_field)))
        if sort_order != "asc":
            ordered.reverse()
        return ordered
    return sorted(rows, key=lambda r: r.get("date") or "", reverse=True)


def paginate(rows: list[dict], page: int, limit: int) -> list[dict]:
    start = (page - 1) * limit
    return rows[start:start + limit]


def recap(query: RecapQuery) -> dict:
    rows = (
        incoming_rows(query.date_from, query.date_to)
        + outgoing_rows(query.date_from, query.date_to)
        + request_rows(query.date_from, query.date_to)
    )
    rows = search_rows(rows, query.search)
    rows = sort_rows(rows, query.sort_field, query.sort_order)

    return {
        "summary": summary(),
        "data": paginate(rows, query.page, query.limit),
        "totalCount": len(rows),
        "page": query.page,
        "limit": query.limit,
    }
