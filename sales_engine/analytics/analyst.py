"""
Sales Analyst

Derived statistics and rankings over a SalesEngine.

Every report is a pure function of the loaded data: nothing is cached and
nothing is mutated, so calling a report twice gives the same answer.

Reports:
- Item and invoice counts per merchant, with outlier classification
- Price statistics and golden items
- Day-of-week and status distributions of invoices
- Revenue totals and merchant/customer revenue rankings
- Per-merchant best sellers and per-customer purchase analysis
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from functools import reduce
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Union

import structlog

from sales_engine.config import get_settings
from sales_engine.exceptions import EmptyDatasetError
from sales_engine.models import Customer, Invoice, InvoiceItem, InvoiceStatus, Item, Merchant

from .statistics import (
    average,
    decimal_average,
    indices_above,
    indices_below,
    lower_threshold,
    percentage,
    ratio,
    standard_deviation,
    upper_threshold,
)

if TYPE_CHECKING:
    from sales_engine.engine import SalesEngine

logger = structlog.get_logger(__name__)

# Sunday-first, independent of locale
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Default k in mean +/- k * stddev, per report
HIGH_ITEM_COUNT_DEVIATIONS = 2.0
GOLDEN_ITEM_DEVIATIONS = 2.0
INVOICE_COUNT_DEVIATIONS = 2.0
TOP_DAY_DEVIATIONS = 1.0

ZERO = Decimal("0")


def weekday_number(moment: datetime) -> int:
    """0 = Sunday .. 6 = Saturday"""
    return (moment.weekday() + 1) % 7


class SalesAnalyst:
    """
    Analytical reports over one SalesEngine.

    Example:
        analyst = SalesAnalyst(engine)
        analyst.average_items_per_merchant()
        analyst.top_revenue_earners(10)
    """

    def __init__(self, engine: "SalesEngine"):
        self.engine = engine

    # ------------------------------------------------------------------
    # Items per merchant
    # ------------------------------------------------------------------

    def _item_counts(self, merchants: List[Merchant]) -> List[int]:
        return [len(self.engine.items.find_all_by_merchant_id(m.id)) for m in merchants]

    def average_items_per_merchant(self) -> float:
        """count(items) / count(merchants)"""
        return ratio(
            len(self.engine.items),
            len(self.engine.merchants),
            "average items per merchant",
        )

    def average_items_per_merchant_standard_deviation(self) -> float:
        mean = self.average_items_per_merchant()
        counts = self._item_counts(self.engine.merchants.all())
        return standard_deviation(counts, mean, "items per merchant standard deviation")

    def merchants_with_high_item_count(
        self,
        deviations: float = HIGH_ITEM_COUNT_DEVIATIONS,
    ) -> List[Merchant]:
        """Merchants whose item count exceeds mean + k * stddev"""
        threshold = upper_threshold(
            self.average_items_per_merchant(),
            self.average_items_per_merchant_standard_deviation(),
            deviations,
        )
        merchants = self.engine.merchants.all()
        counts = self._item_counts(merchants)
        return [merchants[i] for i in indices_above(counts, threshold)]

    def merchants_with_only_one_item(self) -> List[Merchant]:
        merchants = self.engine.merchants.all()
        counts = self._item_counts(merchants)
        return [m for m, count in zip(merchants, counts) if count == 1]

    def merchants_with_only_one_item_registered_in_month(
        self,
        month: Union[str, int],
    ) -> List[Merchant]:
        """Single-item merchants created in a month given by name or number"""
        if isinstance(month, int):
            if not 1 <= month <= 12:
                raise ValueError(f"Month must be 1-12, got {month}")
            month_number = month
        else:
            names = [name.lower() for name in MONTH_NAMES]
            try:
                month_number = names.index(month.strip().lower()) + 1
            except ValueError:
                raise ValueError(f"Unknown month name: {month!r}")

        return [
            m for m in self.merchants_with_only_one_item()
            if m.created_at.month == month_number
        ]

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def average_item_price_for_merchant(self, merchant_id: int) -> Decimal:
        items = self.engine.items.find_all_by_merchant_id(merchant_id)
        return decimal_average(
            (item.unit_price for item in items),
            f"average item price for merchant {merchant_id}",
        )

    def average_average_price_per_merchant(self) -> Decimal:
        """Mean of the per-merchant average prices; merchants without items are skipped"""
        averages = [
            self.average_item_price_for_merchant(m.id)
            for m in self.engine.merchants.all()
            if self.engine.items.find_all_by_merchant_id(m.id)
        ]
        return decimal_average(averages, "average average price per merchant")

    def average_item_cost(self) -> Decimal:
        return decimal_average(
            (item.unit_price for item in self.engine.items.all()),
            "average item cost",
        )

    def item_unit_price_standard_deviation(self) -> float:
        mean = self.average_item_cost()
        prices = [item.unit_price for item in self.engine.items.all()]
        return standard_deviation(prices, mean, "item unit price standard deviation")

    def golden_items(self, deviations: float = GOLDEN_ITEM_DEVIATIONS) -> List[Item]:
        """Items priced above mean + k * stddev"""
        threshold = upper_threshold(
            self.average_item_cost(),
            self.item_unit_price_standard_deviation(),
            deviations,
        )
        items = self.engine.items.all()
        return [items[i] for i in indices_above([item.unit_price for item in items], threshold)]

    # ------------------------------------------------------------------
    # Invoices per merchant
    # ------------------------------------------------------------------

    def _invoice_counts(self, merchants: List[Merchant]) -> List[int]:
        return [len(self.engine.invoices.find_all_by_merchant_id(m.id)) for m in merchants]

    def average_invoices_per_merchant(self) -> float:
        """count(invoices) / count(merchants)"""
        return ratio(
            len(self.engine.invoices),
            len(self.engine.merchants),
            "average invoices per merchant",
        )

    def average_invoices_per_merchant_standard_deviation(self) -> float:
        mean = self.average_invoices_per_merchant()
        counts = self._invoice_counts(self.engine.merchants.all())
        return standard_deviation(counts, mean, "invoices per merchant standard deviation")

    def top_merchants_by_invoice_count(
        self,
        deviations: float = INVOICE_COUNT_DEVIATIONS,
    ) -> List[Merchant]:
        """Merchants whose invoice count exceeds mean + k * stddev"""
        threshold = upper_threshold(
            self.average_invoices_per_merchant(),
            self.average_invoices_per_merchant_standard_deviation(),
            deviations,
        )
        merchants = self.engine.merchants.all()
        return [merchants[i] for i in indices_above(self._invoice_counts(merchants), threshold)]

    def bottom_merchants_by_invoice_count(
        self,
        deviations: float = INVOICE_COUNT_DEVIATIONS,
    ) -> List[Merchant]:
        """Merchants whose invoice count falls below mean - k * stddev"""
        threshold = lower_threshold(
            self.average_invoices_per_merchant(),
            self.average_invoices_per_merchant_standard_deviation(),
            deviations,
        )
        merchants = self.engine.merchants.all()
        return [merchants[i] for i in indices_below(self._invoice_counts(merchants), threshold)]

    # ------------------------------------------------------------------
    # Invoice distributions
    # ------------------------------------------------------------------

    def invoice_count_by_weekday(self) -> Dict[str, int]:
        """Invoice counts for all seven weekdays, Sunday first"""
        invoices = self.engine.invoices.all()
        if not invoices:
            raise EmptyDatasetError("invoice count by weekday", 0)

        counts = [0] * len(DAY_NAMES)
        for invoice in invoices:
            counts[weekday_number(invoice.created_at)] += 1
        return dict(zip(DAY_NAMES, counts))

    def invoice_by_day_standard_deviation(self) -> float:
        counts = list(self.invoice_count_by_weekday().values())
        return standard_deviation(counts, average(counts), "invoices per weekday standard deviation")

    def top_days_by_invoice_count(self, deviations: float = TOP_DAY_DEVIATIONS) -> List[str]:
        """Weekday names whose invoice count exceeds mean + k * stddev"""
        counts = list(self.invoice_count_by_weekday().values())
        mean = average(counts)
        threshold = upper_threshold(
            mean,
            standard_deviation(counts, mean, "invoices per weekday standard deviation"),
            deviations,
        )
        return [DAY_NAMES[i] for i in indices_above(counts, threshold)]

    def invoice_status(self, status: Union[InvoiceStatus, str]) -> float:
        """Percentage of invoices with the given status"""
        wanted = InvoiceStatus(status.strip().lower()) if isinstance(status, str) else status
        invoices = self.engine.invoices.all()
        matching = sum(1 for invoice in invoices if invoice.status == wanted)
        return percentage(matching, len(invoices), f"{wanted.value} invoice percentage")

    # ------------------------------------------------------------------
    # Revenue
    # ------------------------------------------------------------------

    def invoice_paid_in_full(self, invoice_id: int) -> bool:
        """True when the invoice has at least one successful transaction"""
        transactions = self.engine.transactions.find_all_by_invoice_id(invoice_id)
        return any(t.is_success for t in transactions)

    def invoice_total(self, invoice_id: int) -> Decimal:
        """Sum of quantity * unit_price over the invoice lines"""
        lines = self.engine.invoice_items.find_all_by_invoice_id(invoice_id)
        return sum((line.subtotal for line in lines), ZERO)

    def _invoice_is_pending(self, invoice: Invoice) -> bool:
        return not self.invoice_paid_in_full(invoice.id)

    def _add_paid_invoice(self, total: Decimal, invoice: Invoice) -> Decimal:
        if not self.invoice_paid_in_full(invoice.id):
            return total
        return total + self.invoice_total(invoice.id)

    def _paid_revenue(self, invoices: Iterable[Invoice]) -> Decimal:
        return reduce(self._add_paid_invoice, invoices, ZERO)

    def total_revenue_by_date(self, day: Union[date, datetime]) -> Decimal:
        """Total of every invoice created on the given calendar day"""
        target = day.date() if isinstance(day, datetime) else day
        invoices = self.engine.invoices.find_all_where(
            lambda invoice: invoice.created_at.date() == target
        )
        return sum((self.invoice_total(invoice.id) for invoice in invoices), ZERO)

    def revenue_by_merchant(self, merchant_id: int) -> Decimal:
        """Revenue from the merchant's paid-in-full invoices"""
        return self._paid_revenue(self.engine.invoices.find_all_by_merchant_id(merchant_id))

    def merchants_ranked_by_revenue(self) -> List[Merchant]:
        """Merchants by paid revenue, highest first; ties keep collection order"""
        return sorted(
            self.engine.merchants.all(),
            key=lambda m: self.revenue_by_merchant(m.id),
            reverse=True,
        )

    def top_revenue_earners(self, n: Optional[int] = None) -> List[Merchant]:
        n = get_settings().analytics.top_n if n is None else n
        return self.merchants_ranked_by_revenue()[:max(n, 0)]

    def merchants_with_pending_invoices(self) -> List[Merchant]:
        """Merchants with at least one invoice lacking a successful transaction"""
        return [
            m for m in self.engine.merchants.all()
            if any(self._invoice_is_pending(i) for i in self.engine.invoices.find_all_by_merchant_id(m.id))
        ]

    # ------------------------------------------------------------------
    # Best sellers per merchant
    # ------------------------------------------------------------------

    def _invoice_items_for_merchant(self, merchant_id: int) -> List[InvoiceItem]:
        """Lines of the merchant's invoices that are not pending"""
        lines: List[InvoiceItem] = []
        for invoice in self.engine.invoices.find_all_by_merchant_id(merchant_id):
            if not self._invoice_is_pending(invoice):
                lines.extend(self.engine.invoice_items.find_all_by_invoice_id(invoice.id))
        return lines

    def _items_for_lines(self, lines: Iterable[InvoiceItem]) -> List[Item]:
        """Distinct items referenced by the lines, in line order; dangling ids skipped"""
        items: List[Item] = []
        seen = set()
        for line in lines:
            if line.item_id in seen:
                continue
            seen.add(line.item_id)
            item = self.engine.items.find_by_id(line.item_id)
            if item is not None:
                items.append(item)
        return items

    @staticmethod
    def _max_key_group(lines: List[InvoiceItem], key) -> List[InvoiceItem]:
        """The group of lines sharing the largest key value"""
        groups: Dict[object, List[InvoiceItem]] = {}
        for line in lines:
            groups.setdefault(key(line), []).append(line)
        return groups[max(groups)]

    def most_sold_item_for_merchant(self, merchant_id: int) -> List[Item]:
        """
        Items on the merchant's lines with the single largest quantity.

        Selection is by the largest quantity value on any one line, not by
        units summed per item; every item at that quantity is returned.
        """
        lines = self._invoice_items_for_merchant(merchant_id)
        if not lines:
            return []
        return self._items_for_lines(self._max_key_group(lines, lambda line: line.quantity))

    def best_item_for_merchant(self, merchant_id: int) -> Optional[Item]:
        """The item on the merchant's line with the largest quantity * unit_price"""
        lines = self._invoice_items_for_merchant(merchant_id)
        if not lines:
            return None
        items = self._items_for_lines(self._max_key_group(lines, lambda line: line.subtotal))
        return items[0] if items else None

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def customers_ranked_by_revenue(self) -> List[Customer]:
        """Customers by paid spend, highest first; ties keep collection order"""
        return sorted(
            self.engine.customers.all(),
            key=lambda c: self._paid_revenue(self.engine.invoices.find_all_by_customer_id(c.id)),
            reverse=True,
        )

    def top_buyers(self, n: Optional[int] = None) -> List[Customer]:
        n = get_settings().analytics.top_n if n is None else n
        return self.customers_ranked_by_revenue()[:max(n, 0)]

    def _total_quantity(self, invoices: Iterable[Invoice]) -> int:
        return sum(
            line.quantity
            for invoice in invoices
            for line in self.engine.invoice_items.find_all_by_invoice_id(invoice.id)
        )

    def top_merchant_for_customer(self, customer_id: int) -> Optional[Merchant]:
        """Merchant the customer bought the most units from"""
        by_merchant: Dict[int, List[Invoice]] = {}
        for invoice in self.engine.invoices.find_all_by_customer_id(customer_id):
            by_merchant.setdefault(invoice.merchant_id, []).append(invoice)
        if not by_merchant:
            return None

        quantities = {mid: self._total_quantity(invoices) for mid, invoices in by_merchant.items()}
        top_id = max(quantities, key=quantities.get)
        return self.engine.merchants.find_by_id(top_id)

    def one_time_buyers(self) -> List[Customer]:
        """Customers with exactly one invoice"""
        return [
            c for c in self.engine.customers.all()
            if len(self.engine.invoices.find_all_by_customer_id(c.id)) == 1
        ]

    def _paid_lines(self, invoices: Iterable[Invoice]) -> List[InvoiceItem]:
        lines: List[InvoiceItem] = []
        for invoice in invoices:
            if self.invoice_paid_in_full(invoice.id):
                lines.extend(self.engine.invoice_items.find_all_by_invoice_id(invoice.id))
        return lines

    @staticmethod
    def _quantities_by_item(lines: Iterable[InvoiceItem]) -> Dict[int, int]:
        totals: Dict[int, int] = defaultdict(int)
        for line in lines:
            totals[line.item_id] += line.quantity
        return dict(totals)

    def one_time_buyers_top_item(self) -> Optional[Item]:
        """Item with the most units across one-time buyers' paid invoices"""
        invoices = [
            invoice
            for customer in self.one_time_buyers()
            for invoice in self.engine.invoices.find_all_by_customer_id(customer.id)
        ]
        totals = self._quantities_by_item(self._paid_lines(invoices))
        if not totals:
            return None
        return self.engine.items.find_by_id(max(totals, key=totals.get))

    def items_bought_in_year(self, customer_id: int, year: int) -> List[Item]:
        """Items on the customer's paid invoices from that year, one per line"""
        invoices = [
            invoice for invoice in self.engine.invoices.find_all_by_customer_id(customer_id)
            if invoice.created_at.year == year
        ]
        items = (self.engine.items.find_by_id(line.item_id) for line in self._paid_lines(invoices))
        return [item for item in items if item is not None]

    def highest_volume_items(self, customer_id: int) -> List[Item]:
        """Every item tied for the most units the customer bought"""
        lines = [
            line
            for invoice in self.engine.invoices.find_all_by_customer_id(customer_id)
            for line in self.engine.invoice_items.find_all_by_invoice_id(invoice.id)
        ]
        totals = self._quantities_by_item(lines)
        if not totals:
            return []

        top = max(totals.values())
        logger.debug("Highest volume items", customer_id=customer_id, quantity=top)
        items = (self.engine.items.find_by_id(item_id) for item_id, qty in totals.items() if qty == top)
        return [item for item in items if item is not None]
