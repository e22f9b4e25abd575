"""
Entity Records Module
"""
from .entities import (
    Customer,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Item,
    Merchant,
    Record,
    Transaction,
    TransactionResult,
)

__all__ = [
    "Customer",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "Item",
    "Merchant",
    "Record",
    "Transaction",
    "TransactionResult",
]
