"""
Entity Repositories

One Repository per entity type with the finders the reports and callers use.
Text finders are case-insensitive; every finder returns an empty list rather
than None when nothing matches.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Union

from sales_engine.ingestion import CSVLoader
from sales_engine.models import (
    Customer,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Item,
    Merchant,
    Transaction,
    TransactionResult,
)

from .base import Repository

Price = Union[Decimal, float, int, str]


def _to_price(value: Price) -> Optional[Decimal]:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _contains(haystack: str, needle: str) -> bool:
    return needle.strip().lower() in haystack.lower()


class MerchantRepository(Repository[Merchant]):
    """Merchants"""

    def __init__(self, loader: Optional[CSVLoader] = None):
        super().__init__(Merchant, loader=loader)

    def find_by_name(self, name: str) -> Optional[Merchant]:
        target = name.strip().lower()
        return next((m for m in self.all() if m.name.lower() == target), None)

    def find_all_by_name(self, fragment: str) -> List[Merchant]:
        return self.find_all_where(lambda m: _contains(m.name, fragment))


class ItemRepository(Repository[Item]):
    """Items, indexed by merchant"""

    def __init__(self, loader: Optional[CSVLoader] = None):
        super().__init__(Item, indexed_fields=("merchant_id",), loader=loader)

    def find_by_name(self, name: str) -> Optional[Item]:
        target = name.strip().lower()
        return next((i for i in self.all() if i.name.lower() == target), None)

    def find_all_with_description(self, fragment: str) -> List[Item]:
        return self.find_all_where(lambda i: _contains(i.description, fragment))

    def find_all_by_price(self, price: Price) -> List[Item]:
        target = _to_price(price)
        if target is None:
            return []
        return self.find_all_where(lambda i: i.unit_price == target)

    def find_all_by_price_in_range(self, low: Price, high: Price) -> List[Item]:
        """Items priced within [low, high]"""
        lower, upper = _to_price(low), _to_price(high)
        if lower is None or upper is None:
            return []
        return self.find_all_where(lambda i: lower <= i.unit_price <= upper)

    def find_all_by_merchant_id(self, merchant_id: Any) -> List[Item]:
        return self.find_all_by("merchant_id", merchant_id)


class InvoiceRepository(Repository[Invoice]):
    """Invoices, indexed by customer and merchant"""

    def __init__(self, loader: Optional[CSVLoader] = None):
        super().__init__(Invoice, indexed_fields=("customer_id", "merchant_id"), loader=loader)

    def find_all_by_customer_id(self, customer_id: Any) -> List[Invoice]:
        return self.find_all_by("customer_id", customer_id)

    def find_all_by_merchant_id(self, merchant_id: Any) -> List[Invoice]:
        return self.find_all_by("merchant_id", merchant_id)

    def find_all_by_status(self, status: Union[InvoiceStatus, str]) -> List[Invoice]:
        wanted = status.value if isinstance(status, InvoiceStatus) else str(status).strip().lower()
        return self.find_all_where(lambda i: i.status.value == wanted)


class InvoiceItemRepository(Repository[InvoiceItem]):
    """Invoice lines, indexed by item and invoice"""

    def __init__(self, loader: Optional[CSVLoader] = None):
        super().__init__(InvoiceItem, indexed_fields=("item_id", "invoice_id"), loader=loader)

    def find_all_by_item_id(self, item_id: Any) -> List[InvoiceItem]:
        return self.find_all_by("item_id", item_id)

    def find_all_by_invoice_id(self, invoice_id: Any) -> List[InvoiceItem]:
        return self.find_all_by("invoice_id", invoice_id)


class TransactionRepository(Repository[Transaction]):
    """Transactions, indexed by invoice"""

    def __init__(self, loader: Optional[CSVLoader] = None):
        super().__init__(Transaction, indexed_fields=("invoice_id",), loader=loader)

    def find_all_by_invoice_id(self, invoice_id: Any) -> List[Transaction]:
        return self.find_all_by("invoice_id", invoice_id)

    def find_all_by_credit_card_number(self, credit_card_number: Any) -> List[Transaction]:
        return self.find_all_by("credit_card_number", str(credit_card_number).strip())

    def find_all_by_result(self, result: Union[TransactionResult, str]) -> List[Transaction]:
        wanted = result.value if isinstance(result, TransactionResult) else str(result).strip().lower()
        return self.find_all_where(lambda t: t.result.value == wanted)


class CustomerRepository(Repository[Customer]):
    """Customers"""

    def __init__(self, loader: Optional[CSVLoader] = None):
        super().__init__(Customer, loader=loader)

    def find_all_by_first_name(self, fragment: str) -> List[Customer]:
        return self.find_all_where(lambda c: _contains(c.first_name, fragment))

    def find_all_by_last_name(self, fragment: str) -> List[Customer]:
        return self.find_all_where(lambda c: _contains(c.last_name, fragment))
