from .catalog import ProductCategory, Product, Warehouse
from .parties import Supplier, Customer
from .transactions import (
    IncomingTransaction,
    IncomingTransactionItem,
    OutgoingTransaction,
    OutgoingTransactionItem,
    StockMovement,
)
from .requests import ProductRequest
from .auth import User, SessionToken

__all__ = [
    'ProductCategory', 'Product', 'Warehouse',
    'Supplier', 'Customer',
    'IncomingTransaction', 'IncomingTransactionItem',
    'OutgoingTransaction', 'OutgoingTransactionItem',
    'StockMovement',
    'ProductRequest',
    'User', 'SessionToken',
]
