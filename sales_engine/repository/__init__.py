"""
Repository Module
"""
from .base import Repository
from .repositories import (
    CustomerRepository,
    InvoiceItemRepository,
    InvoiceRepository,
    ItemRepository,
    MerchantRepository,
    TransactionRepository,
)

__all__ = [
    "Repository",
    "CustomerRepository",
    "InvoiceItemRepository",
    "InvoiceRepository",
    "ItemRepository",
    "MerchantRepository",
    "TransactionRepository",
]
