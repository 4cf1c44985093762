# Overview: Row builders for the incoming/outgoing item reports.

"""
Report rows are one line per transaction item, flattened with the
header, product and category so the report tables need no joins of
their own. Dates are dd-MM-yyyy like the transaction tables.
"""

from ..models import IncomingTransactionItem, OutgoingTransactionItem
from ..time_utils import to_dmy


def _product_fields(item) -> dict:
    product = item.product
    return {
        "productName": product.name if product else "-",
        "category": product.category.name if product and product.category else "-",
        "partNumber": (product.part_number if product else None) or "-",
        "currentStock": product.stock if product else 0,
    }


def incoming_row(item: IncomingTransactionItem) -> dict:
    header = item.incoming_transaction
    return {
        "id": item.id,
        "transactionId": header.id,
        "date": to_dmy(header.transaction_date),
        **_product_fields(item),
        "supplier": header.supplier.name if header.supplier else "-",
        "warehouse": header.warehouse.name if header.warehouse else "-",
        "quantityIn": item.quantity,
        "status": header.status,
        "remarks": item.notes or "",
    }


def outgoing_row(item: OutgoingTransactionItem) -> dict:
    header = item.outgoing_transaction
    if header.warehouse:
        source = header.warehouse.name
    else:
        source = header.source_location or "-"
    if item.destination:
        destination = item.destination
    else:
        destination = header.customer.name if header.customer else "-"
    return {
        "id": item.id,
        "transactionId": header.id,
        "date": to_dmy(header.transaction_date),
        **_product_fields(item),
        "customer": header.customer.name if header.customer else "-",
        "source": source,
        "destination": destination,
        "quantityOut": item.quantity,
        "status": header.status,
        "remarks": item.notes or "",
    }
