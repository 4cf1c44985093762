"""
Per-entity field tables.

Public names are the camelCase keys the list screens send; paths are
mapped attribute names on the listed model. Adding a filter or sort
column means adding a line here, nothing else.
"""

from __future__ import annotations

from ..models import (
    Customer,
    IncomingTransaction,
    IncomingTransactionItem,
    OutgoingTransaction,
    OutgoingTransactionItem,
    Product,
    ProductCategory,
    ProductRequest,
    Supplier,
    User,
    Warehouse,
)
from .fields import CountSort, DateField, EnumField, NumberField, RelationField, SortPath, TextField
from .translator import ASC, DESC, EntityQuery, SearchFields


def _timestamps():
    return {
        "createdAt": DateField(("created_at",), with_time=True),
        "updatedAt": DateField(("updated_at",), with_time=True),
    }


def _timestamp_sorts():
    return {
        "id": SortPath(("id",)),
        "createdAt": SortPath(("created_at",)),
        "updatedAt": SortPath(("updated_at",)),
    }


CATEGORIES = EntityQuery(
    name="categories",
    model=ProductCategory,
    filters={
        "categoryName": TextField(("name",)),
        "description": TextField(("description",)),
        **_timestamps(),
    },
    sorts={
        **_timestamp_sorts(),
        "categoryName": SortPath(("name",)),
        "name": SortPath(("name",)),
        "productCount": CountSort("products"),
    },
    default_sort="categoryName",
    default_order=ASC,
    search=SearchFields(paths=[("name",), ("description",)]),
)


PRODUCTS = EntityQuery(
    name="products",
    model=Product,
    filters={
        "productName": TextField(("name",)),
        "cardNumber": TextField(("card_number",)),
        "partNumber": TextField(("part_number",)),
        "description": TextField(("description",)),
        "stock": NumberField(("stock",)),
        "unitPrice": NumberField(("unit_price",)),
        "reorderLevel": NumberField(("reorder_level",)),
        "status": EnumField(("status",)),
        "category": RelationField(("category",)),
        "supplier": RelationField(("supplier",)),
        **_timestamps(),
    },
    sorts={
        **_timestamp_sorts(),
        "productName": SortPath(("name",)),
        "name": SortPath(("name",)),
        "cardNumber": SortPath(("card_number",)),
        "partNumber": SortPath(("part_number",)),
        "stock": SortPath(("stock",)),
        "unitPrice": SortPath(("unit_price",)),
        "reorderLevel": SortPath(("reorder_level",)),
        "status": SortPath(("status",)),
        "category": SortPath(("category", "name")),
        "supplier": SortPath(("supplier", "name")),
        "supplierName": SortPath(("supplier", "name")),
    },
    default_sort="createdAt",
    search=SearchFields(paths=[
        ("name",),
        ("part_number",),
        ("description",),
        ("card_number",),
        ("category", "name"),
        ("supplier", "name"),
    ]),
)


def _party_query(name: str, model, display_key: str) -> EntityQuery:
    return EntityQuery(
        name=name,
        model=model,
        filters={
            display_key: TextField(("name",)),
            "phoneNumber": TextField(("phone",)),
            "email": TextField(("email",)),
            "address": TextField(("address",)),
            "contactPerson": TextField(("contact_person",)),
            "notes": TextField(("notes",)),
            "status": EnumField(("status",)),
            **_timestamps(),
        },
        sorts={
            **_timestamp_sorts(),
            display_key: SortPath(("name",)),
            "name": SortPath(("name",)),
            "phoneNumber": SortPath(("phone",)),
            "phone": SortPath(("phone",)),
            "email": SortPath(("email",)),
            "address": SortPath(("address",)),
            "contactPerson": SortPath(("contact_person",)),
            "status": SortPath(("status",)),
        },
        default_sort="createdAt",
        search=SearchFields(paths=[("name",), ("email",), ("phone",), ("address",), ("contact_person",)]),
    )


SUPPLIERS = _party_query("suppliers", Supplier, "supplierName")
CUSTOMERS = _party_query("customers", Customer, "customerName")


WAREHOUSES = EntityQuery(
    name="warehouses",
    model=Warehouse,
    filters={
        "name": TextField(("name",)),
        "address": TextField(("address",)),
        "status": EnumField(("status",)),
    },
    sorts={
        **_timestamp_sorts(),
        "name": SortPath(("name",)),
        "address": SortPath(("address",)),
        "status": SortPath(("status",)),
    },
    default_sort="id",
    search=SearchFields(paths=[("name",), ("address",)]),
)


INCOMING_TRANSACTIONS = EntityQuery(
    name="incoming_transactions",
    model=IncomingTransaction,
    filters={
        "transactionDate": DateField(("transaction_date",)),
        "notes": TextField(("notes",)),
        "status": EnumField(("status",)),
        "supplier": RelationField(("supplier",)),
        "warehouse": RelationField(("warehouse",)),
        "totalItems": NumberField(("total_items",)),
        "totalValue": NumberField(("total_value",)),
        **_timestamps(),
    },
    sorts={
        **_timestamp_sorts(),
        "transactionDate": SortPath(("transaction_date",)),
        "totalItems": SortPath(("total_items",)),
        "totalValue": SortPath(("total_value",)),
        "status": SortPath(("status",)),
        "supplier": SortPath(("supplier", "name")),
        "warehouse": SortPath(("warehouse", "name")),
    },
    default_sort="transactionDate",
    search=SearchFields(
        paths=[("notes",), ("status",), ("supplier", "name"), ("warehouse", "name")],
        match_id=True,
    ),
)


OUTGOING_TRANSACTIONS = EntityQuery(
    name="outgoing_transactions",
    model=OutgoingTransaction,
    filters={
        "transactionDate": DateField(("transaction_date",)),
        "notes": TextField(("notes",)),
        "status": EnumField(("status",)),
        "customer": RelationField(("customer",)),
        "warehouse": RelationField(("warehouse",)),
        "sourceLocation": TextField(("source_location",)),
        "totalItems": NumberField(("total_items",)),
        "totalValue": NumberField(("total_value",)),
        **_timestamps(),
    },
    sorts={
        **_timestamp_sorts(),
        "transactionDate": SortPath(("transaction_date",)),
        "totalItems": SortPath(("total_items",)),
        "totalValue": SortPath(("total_value",)),
        "status": SortPath(("status",)),
        "customer": SortPath(("customer", "name")),
        "warehouse": SortPath(("warehouse", "name")),
    },
    default_sort="transactionDate",
    search=SearchFields(
        paths=[("notes",), ("status",), ("customer", "name"), ("warehouse", "name"), ("source_location",)],
        match_id=True,
    ),
)


INCOMING_REPORT = EntityQuery(
    name="incoming_report",
    model=IncomingTransactionItem,
    filters={
        "transactionDate": DateField(("incoming_transaction", "transaction_date")),
        "supplier": RelationField(("incoming_transaction", "supplier")),
        "warehouse": RelationField(("incoming_transaction", "warehouse")),
        "category": RelationField(("product", "category")),
        "status": EnumField(("incoming_transaction", "status")),
        "productName": TextField(("product", "name")),
        "partNumber": TextField(("product", "part_number")),
        "quantityIn": NumberField(("quantity",)),
        "currentStock": NumberField(("product", "stock")),
    },
    sorts={
        "id": SortPath(("id",)),
        "date": SortPath(("incoming_transaction", "transaction_date")),
        "productName": SortPath(("product", "name")),
        "category": SortPath(("product", "category", "name")),
        "partNumber": SortPath(("product", "part_number")),
        "supplier": SortPath(("incoming_transaction", "supplier", "name")),
        "warehouse": SortPath(("incoming_transaction", "warehouse", "name")),
        "quantityIn": SortPath(("quantity",)),
        "currentStock": SortPath(("product", "stock")),
    },
    default_sort="date",
    search=SearchFields(paths=[
        ("product", "name"),
        ("product", "part_number"),
        ("product", "category", "name"),
        ("incoming_transaction", "supplier", "name"),
        ("incoming_transaction", "warehouse", "name"),
        ("notes",),
    ]),
)


OUTGOING_REPORT = EntityQuery(
    name="outgoing_report",
    model=OutgoingTransactionItem,
    filters={
        "transactionDate": DateField(("outgoing_transaction", "transaction_date")),
        "customer": RelationField(("outgoing_transaction", "customer")),
        "warehouse": RelationField(("outgoing_transaction", "warehouse")),
        "category": RelationField(("product", "category")),
        "status": EnumField(("outgoing_transaction", "status")),
        "productName": TextField(("product", "name")),
        "partNumber": TextField(("product", "part_number")),
        "destination": TextField(("destination",)),
        "quantityOut": NumberField(("quantity",)),
        "currentStock": NumberField(("product", "stock")),
    },
    sorts={
        "id": SortPath(("id",)),
        "date": SortPath(("outgoing_transaction", "transaction_date")),
        "productName": SortPath(("product", "name")),
        "category": SortPath(("product", "category", "name")),
        "partNumber": SortPath(("product", "part_number")),
        "source": SortPath(("outgoing_transaction", "warehouse", "name")),
        "destination": SortPath(("destination",)),
        "customer": SortPath(("outgoing_transaction", "customer", "name")),
        "quantityOut": SortPath(("quantity",)),
        "currentStock": SortPath(("product", "stock")),
    },
    default_sort="date",
    search=SearchFields(paths=[
        ("product", "name"),
        ("product", "part_number"),
        ("product", "category", "name"),
        ("outgoing_transaction", "customer", "name"),
        ("outgoing_transaction", "warehouse", "name"),
        ("outgoing_transaction", "source_location"),
        ("destination",),
    ]),
)


REQUESTS = EntityQuery(
    name="requests",
    model=ProductRequest,
    filters={
        "requestedItem": TextField(("requested_item",)),
        "store": TextField(("store",)),
        "supplier": TextField(("supplier",)),
        "notes": TextField(("notes",)),
        "requestedQuantity": NumberField(("requested_quantity",)),
        "fulfilledQuantity": NumberField(("fulfilled_quantity",)),
        "unitPrice": NumberField(("unit_price",)),
        "totalPrice": NumberField(("total_price",)),
        "requestDate": DateField(("request_date",)),
        "fulfilledDate": DateField(("fulfilled_date",)),
        "status": EnumField(("status",)),
    },
    sorts={
        **_timestamp_sorts(),
        "requestedItem": SortPath(("requested_item",)),
        "requestedQuantity": SortPath(("requested_quantity",)),
        "fulfilledQuantity": SortPath(("fulfilled_quantity",)),
        "requestDate": SortPath(("request_date",)),
        "fulfilledDate": SortPath(("fulfilled_date",)),
        "store": SortPath(("store",)),
        "unitPrice": SortPath(("unit_price",)),
        "totalPrice": SortPath(("total_price",)),
        "supplier": SortPath(("supplier",)),
        "status": SortPath(("status",)),
    },
    default_sort="requestDate",
    default_order=DESC,
    search=SearchFields(paths=[("requested_item",), ("store",), ("supplier",), ("notes",), ("status",)]),
)


USERS = EntityQuery(
    name="users",
    model=User,
    filters={
        "name": TextField(("name",)),
        "email": TextField(("email",)),
        "phone": TextField(("phone",)),
        "role": EnumField(("role",)),
        "status": EnumField(("status",)),
        **_timestamps(),
    },
    sorts={
        **_timestamp_sorts(),
        "name": SortPath(("name",)),
        "email": SortPath(("email",)),
        "role": SortPath(("role",)),
        "status": SortPath(("status",)),
    },
    default_sort="createdAt",
    search=SearchFields(paths=[("name",), ("email",), ("phone",)]),
)


ENTITIES = {
    entity.name: entity
    for entity in (
        CATEGORIES,
        PRODUCTS,
        SUPPLIERS,
        CUSTOMERS,
        WAREHOUSES,
        INCOMING_TRANSACTIONS,
        OUTGOING_TRANSACTIONS,
        INCOMING_REPORT,
        OUTGOING_REPORT,
        REQUESTS,
        USERS,
    )
}
