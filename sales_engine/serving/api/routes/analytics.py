"""
Analytics API Endpoints

Read-only REST API over the sales analyst reports.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
import structlog

from sales_engine.analytics import SalesAnalyst
from sales_engine.analytics.analyst import (
    GOLDEN_ITEM_DEVIATIONS,
    HIGH_ITEM_COUNT_DEVIATIONS,
    INVOICE_COUNT_DEVIATIONS,
    TOP_DAY_DEVIATIONS,
)
from sales_engine.models import Customer, InvoiceStatus, Item, Merchant
from sales_engine.serving.api.dependencies import get_analyst

router = APIRouter()
logger = structlog.get_logger(__name__)


class MerchantSummary(BaseModel):
    """Merchant in a report"""
    id: int
    name: str

    @classmethod
    def of(cls, merchant: Merchant) -> "MerchantSummary":
        return cls(id=merchant.id, name=merchant.name)


class CustomerSummary(BaseModel):
    """Customer in a report"""
    id: int
    first_name: str
    last_name: str

    @classmethod
    def of(cls, customer: Customer) -> "CustomerSummary":
        return cls(id=customer.id, first_name=customer.first_name, last_name=customer.last_name)


class ItemSummary(BaseModel):
    """Item in a report"""
    id: int
    name: str
    unit_price: float
    merchant_id: int

    @classmethod
    def of(cls, item: Item) -> "ItemSummary":
        return cls(id=item.id, name=item.name, unit_price=float(item.unit_price), merchant_id=item.merchant_id)


class Distribution(BaseModel):
    """Mean and sample standard deviation of a per-merchant count"""
    average: float
    standard_deviation: float


class StatusShare(BaseModel):
    """Share of invoices in one status"""
    status: InvoiceStatus
    percentage: float


class WeekdayDistribution(BaseModel):
    """Invoices per weekday and the days above threshold"""
    counts: Dict[str, int]
    standard_deviation: float
    top_days: List[str]


class MerchantRevenue(BaseModel):
    """Paid revenue of one merchant"""
    merchant_id: int
    revenue: float


class InvoiceTotal(BaseModel):
    """Total and payment state of one invoice"""
    invoice_id: int
    total: float
    paid_in_full: bool


# =============================================================================
# MERCHANTS
# =============================================================================

@router.get("/merchants/items", response_model=Distribution)
def get_items_per_merchant(analyst: SalesAnalyst = Depends(get_analyst)) -> Distribution:
    """Items per merchant"""
    return Distribution(
        average=analyst.average_items_per_merchant(),
        standard_deviation=analyst.average_items_per_merchant_standard_deviation(),
    )


@router.get("/merchants/items/high", response_model=List[MerchantSummary])
def get_merchants_with_high_item_count(
    deviations: float = Query(default=HIGH_ITEM_COUNT_DEVIATIONS, ge=0),
    analyst: SalesAnalyst = Depends(get_analyst),
) -> List[MerchantSummary]:
    return [MerchantSummary.of(m) for m in analyst.merchants_with_high_item_count(deviations)]


@router.get("/merchants/invoices", response_model=Distribution)
def get_invoices_per_merchant(analyst: SalesAnalyst = Depends(get_analyst)) -> Distribution:
    """Invoices per merchant"""
    return Distribution(
        average=analyst.average_invoices_per_merchant(),
        standard_deviation=analyst.average_invoices_per_merchant_standard_deviation(),
    )


@router.get("/merchants/invoices/top", response_model=List[MerchantSummary])
def get_top_merchants_by_invoice_count(
    deviations: float = Query(default=INVOICE_COUNT_DEVIATIONS, ge=0),
    analyst: SalesAnalyst = Depends(get_analyst),
) -> List[MerchantSummary]:
    return [MerchantSummary.of(m) for m in analyst.top_merchants_by_invoice_count(deviations)]


@router.get("/merchants/invoices/bottom", response_model=List[MerchantSummary])
def get_bottom_merchants_by_invoice_count(
    deviations: float = Query(default=INVOICE_COUNT_DEVIATIONS, ge=0),
    analyst: SalesAnalyst = Depends(get_analyst),
) -> List[MerchantSummary]:
    return [MerchantSummary.of(m) for m in analyst.bottom_merchants_by_invoice_count(deviations)]


@router.get("/merchants/top-revenue", response_model=List[MerchantSummary])
def get_top_revenue_earners(
    n: Optional[int] = Query(default=None, ge=1, description="Defaults to the configured top_n"),
    analyst: SalesAnalyst = Depends(get_analyst),
) -> List[MerchantSummary]:
    """Merchants ranked by paid revenue"""
    logger.info("get_top_revenue_earners called", n=n)
    return [MerchantSummary.of(m) for m in analyst.top_revenue_earners(n)]


@router.get("/merchants/pending", response_model=List[MerchantSummary])
def get_merchants_with_pending_invoices(
    analyst: SalesAnalyst = Depends(get_analyst),
) -> List[MerchantSummary]:
    return [MerchantSummary.of(m) for m in analyst.merchants_with_pending_invoices()]


@router.get("/merchants/{merchant_id}/revenue", response_model=MerchantRevenue)
def get_merchant_revenue(
    merchant_id: int,
    analyst: SalesAnalyst = Depends(get_analyst),
) -> MerchantRevenue:
    """Paid revenue of one merchant"""
    if analyst.engine.merchants.find_by_id(merchant_id) is None:
        raise HTTPException(status_code=404, detail=f"Merchant {merchant_id} not found")
    return MerchantRevenue(
        merchant_id=merchant_id,
        revenue=float(analyst.revenue_by_merchant(merchant_id)),
    )


# =============================================================================
# ITEMS
# =============================================================================

@router.get("/items/golden", response_model=List[ItemSummary])
def get_golden_items(
    deviations: float = Query(default=GOLDEN_ITEM_DEVIATIONS, ge=0),
    analyst: SalesAnalyst = Depends(get_analyst),
) -> List[ItemSummary]:
    """Items priced far above the mean"""
    return [ItemSummary.of(i) for i in analyst.golden_items(deviations)]


# =============================================================================
# INVOICES
# =============================================================================

@router.get("/invoices/weekdays", response_model=WeekdayDistribution)
def get_invoices_by_weekday(
    deviations: float = Query(default=TOP_DAY_DEVIATIONS, ge=0),
    analyst: SalesAnalyst = Depends(get_analyst),
) -> WeekdayDistribution:
    return WeekdayDistribution(
        counts=analyst.invoice_count_by_weekday(),
        standard_deviation=analyst.invoice_by_day_standard_deviation(),
        top_days=analyst.top_days_by_invoice_count(deviations),
    )


@router.get("/invoices/status/{status}", response_model=StatusShare)
def get_invoice_status(
    status: InvoiceStatus,
    analyst: SalesAnalyst = Depends(get_analyst),
) -> StatusShare:
    """Percentage of invoices in a status"""
    return StatusShare(status=status, percentage=analyst.invoice_status(status))


@router.get("/invoices/{invoice_id}/total", response_model=InvoiceTotal)
def get_invoice_total(
    invoice_id: int,
    analyst: SalesAnalyst = Depends(get_analyst),
) -> InvoiceTotal:
    if analyst.engine.invoices.find_by_id(invoice_id) is None:
        raise HTTPException(status_code=404, detail=f"Invoice {invoice_id} not found")
    return InvoiceTotal(
        invoice_id=invoice_id,
        total=float(analyst.invoice_total(invoice_id)),
        paid_in_full=analyst.invoice_paid_in_full(invoice_id),
    )


# =============================================================================
# CUSTOMERS
# =============================================================================

@router.get("/customers/top-buyers", response_model=List[CustomerSummary])
def get_top_buyers(
    n: Optional[int] = Query(default=None, ge=1, description="Defaults to the configured top_n"),
    analyst: SalesAnalyst = Depends(get_analyst),
) -> List[CustomerSummary]:
    """Customers ranked by paid spend"""
    logger.info("get_top_buyers called", n=n)
    return [CustomerSummary.of(c) for c in analyst.top_buyers(n)]
