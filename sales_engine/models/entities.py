"""
Entity Records

Immutable records for the six sales tables:

- Merchant: sellers
- Item: catalog entries belonging to a merchant
- Invoice: a customer's order with one merchant
- InvoiceItem: a line of an invoice, priced at time of sale
- Transaction: a card payment attempt against an invoice
- Customer: buyers

Relationships are explicit methods that take the owning SalesEngine, so a
record never holds a pointer into a collection. A dangling foreign key
resolves to None or an empty list.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, List, Optional, Tuple

from sales_engine.ingestion.parsers import RowDecoder

if TYPE_CHECKING:
    from sales_engine.engine import SalesEngine


# =============================================================================
# ENUMERATIONS
# =============================================================================

class InvoiceStatus(str, Enum):
    """Invoice status enumeration"""
    PENDING = "pending"
    SHIPPED = "shipped"
    RETURNED = "returned"


class TransactionResult(str, Enum):
    """Transaction result enumeration"""
    SUCCESS = "success"
    FAILED = "failed"


# =============================================================================
# BASE
# =============================================================================

class Record:
    """Behaviour shared by every entity record"""

    ENTITY: ClassVar[str] = "record"
    COLUMNS: ClassVar[Tuple[str, ...]] = ()
    MUTABLE_FIELDS: ClassVar[Tuple[str, ...]] = ()

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_row(cls, decoder: RowDecoder) -> "Record":
        raise NotImplementedError


# =============================================================================
# ENTITIES
# =============================================================================

@dataclass(frozen=True)
class Merchant(Record):
    """A seller with a catalog of items"""

    ENTITY: ClassVar[str] = "merchant"
    COLUMNS: ClassVar[Tuple[str, ...]] = ("id", "name", "created_at", "updated_at")
    MUTABLE_FIELDS: ClassVar[Tuple[str, ...]] = ("name",)

    id: int
    name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, decoder: RowDecoder) -> "Merchant":
        return cls(
            id=decoder.integer("id"),
            name=decoder.text("name"),
            created_at=decoder.timestamp("created_at"),
            updated_at=decoder.timestamp("updated_at"),
        )

    def items(self, engine: "SalesEngine") -> List["Item"]:
        return engine.items.find_all_by_merchant_id(self.id)

    def invoices(self, engine: "SalesEngine") -> List["Invoice"]:
        return engine.invoices.find_all_by_merchant_id(self.id)

    def customers(self, engine: "SalesEngine") -> List["Customer"]:
        """Distinct customers with an invoice at this merchant, first seen first"""
        customers = []
        seen = set()
        for invoice in self.invoices(engine):
            if invoice.customer_id in seen:
                continue
            seen.add(invoice.customer_id)
            customer = engine.customers.find_by_id(invoice.customer_id)
            if customer is not None:
                customers.append(customer)
        return customers


@dataclass(frozen=True)
class Item(Record):
    """A catalog item offered by one merchant"""

    ENTITY: ClassVar[str] = "item"
    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "id", "name", "description", "unit_price", "merchant_id", "created_at", "updated_at",
    )
    MUTABLE_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "description", "unit_price")

    id: int
    name: str
    description: str
    unit_price: Decimal
    merchant_id: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, decoder: RowDecoder) -> "Item":
        return cls(
            id=decoder.integer("id"),
            name=decoder.text("name"),
            description=decoder.text("description"),
            unit_price=decoder.price("unit_price"),
            merchant_id=decoder.integer("merchant_id"),
            created_at=decoder.timestamp("created_at"),
            updated_at=decoder.timestamp("updated_at"),
        )

    @property
    def unit_price_to_dollars(self) -> float:
        return float(self.unit_price)

    def merchant(self, engine: "SalesEngine") -> Optional[Merchant]:
        return engine.merchants.find_by_id(self.merchant_id)


@dataclass(frozen=True)
class Invoice(Record):
    """A customer's order placed with one merchant"""

    ENTITY: ClassVar[str] = "invoice"
    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "id", "customer_id", "merchant_id", "status", "created_at", "updated_at",
    )
    MUTABLE_FIELDS: ClassVar[Tuple[str, ...]] = ("status",)

    id: int
    customer_id: int
    merchant_id: int
    status: InvoiceStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, decoder: RowDecoder) -> "Invoice":
        return cls(
            id=decoder.integer("id"),
            customer_id=decoder.integer("customer_id"),
            merchant_id=decoder.integer("merchant_id"),
            status=decoder.enum("status", InvoiceStatus),
            created_at=decoder.timestamp("created_at"),
            updated_at=decoder.timestamp("updated_at"),
        )

    def merchant(self, engine: "SalesEngine") -> Optional[Merchant]:
        return engine.merchants.find_by_id(self.merchant_id)

    def customer(self, engine: "SalesEngine") -> Optional["Customer"]:
        return engine.customers.find_by_id(self.customer_id)

    def invoice_items(self, engine: "SalesEngine") -> List["InvoiceItem"]:
        return engine.invoice_items.find_all_by_invoice_id(self.id)

    def items(self, engine: "SalesEngine") -> List[Item]:
        """Items on this invoice, one per line; dangling lines are skipped"""
        items = []
        for invoice_item in self.invoice_items(engine):
            item = engine.items.find_by_id(invoice_item.item_id)
            if item is not None:
                items.append(item)
        return items

    def transactions(self, engine: "SalesEngine") -> List["Transaction"]:
        return engine.transactions.find_all_by_invoice_id(self.id)

    def is_paid_in_full(self, engine: "SalesEngine") -> bool:
        """True when at least one transaction succeeded"""
        return any(t.is_success for t in self.transactions(engine))

    def is_pending(self, engine: "SalesEngine") -> bool:
        """True when no transaction succeeded, including no transactions at all"""
        return not self.is_paid_in_full(engine)

    def total(self, engine: "SalesEngine") -> Decimal:
        """Sum of quantity * unit_price over the invoice lines"""
        return sum(
            (line.subtotal for line in self.invoice_items(engine)),
            Decimal("0"),
        )


@dataclass(frozen=True)
class InvoiceItem(Record):
    """One line of an invoice"""

    ENTITY: ClassVar[str] = "invoice_item"
    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "id", "item_id", "invoice_id", "quantity", "unit_price", "created_at", "updated_at",
    )
    MUTABLE_FIELDS: ClassVar[Tuple[str, ...]] = ("quantity", "unit_price")

    id: int
    item_id: int
    invoice_id: int
    quantity: int
    unit_price: Decimal
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, decoder: RowDecoder) -> "InvoiceItem":
        return cls(
            id=decoder.integer("id"),
            item_id=decoder.integer("item_id"),
            invoice_id=decoder.integer("invoice_id"),
            quantity=decoder.integer("quantity"),
            unit_price=decoder.price("unit_price"),
            created_at=decoder.timestamp("created_at"),
            updated_at=decoder.timestamp("updated_at"),
        )

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def item(self, engine: "SalesEngine") -> Optional[Item]:
        return engine.items.find_by_id(self.item_id)

    def invoice(self, engine: "SalesEngine") -> Optional[Invoice]:
        return engine.invoices.find_by_id(self.invoice_id)


@dataclass(frozen=True)
class Transaction(Record):
    """A card payment attempt against an invoice"""

    ENTITY: ClassVar[str] = "transaction"
    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "id", "invoice_id", "credit_card_number", "result", "created_at", "updated_at",
    )
    MUTABLE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "credit_card_number", "credit_card_expiration_date", "result",
    )

    id: int
    invoice_id: int
    credit_card_number: str
    result: TransactionResult
    created_at: datetime
    updated_at: datetime
    credit_card_expiration_date: str = ""

    @classmethod
    def from_row(cls, decoder: RowDecoder) -> "Transaction":
        return cls(
            id=decoder.integer("id"),
            invoice_id=decoder.integer("invoice_id"),
            credit_card_number=decoder.required("credit_card_number").strip(),
            result=decoder.enum("result", TransactionResult),
            created_at=decoder.timestamp("created_at"),
            updated_at=decoder.timestamp("updated_at"),
            credit_card_expiration_date=decoder.text("credit_card_expiration_date"),
        )

    @property
    def is_success(self) -> bool:
        return self.result == TransactionResult.SUCCESS

    def invoice(self, engine: "SalesEngine") -> Optional[Invoice]:
        return engine.invoices.find_by_id(self.invoice_id)


@dataclass(frozen=True)
class Customer(Record):
    """A buyer"""

    ENTITY: ClassVar[str] = "customer"
    COLUMNS: ClassVar[Tuple[str, ...]] = ("id", "first_name", "last_name", "created_at", "updated_at")
    MUTABLE_FIELDS: ClassVar[Tuple[str, ...]] = ("first_name", "last_name")

    id: int
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, decoder: RowDecoder) -> "Customer":
        return cls(
            id=decoder.integer("id"),
            first_name=decoder.text("first_name"),
            last_name=decoder.text("last_name"),
            created_at=decoder.timestamp("created_at"),
            updated_at=decoder.timestamp("updated_at"),
        )

    def invoices(self, engine: "SalesEngine") -> List[Invoice]:
        return engine.invoices.find_all_by_customer_id(self.id)

    def merchants(self, engine: "SalesEngine") -> List[Merchant]:
        """Distinct merchants this customer has invoiced with, first seen first"""
        merchants = []
        seen = set()
        for invoice in self.invoices(engine):
            if invoice.merchant_id in seen:
                continue
            seen.add(invoice.merchant_id)
            merchant = engine.merchants.find_by_id(invoice.merchant_id)
            if merchant is not None:
                merchants.append(merchant)
        return merchants
