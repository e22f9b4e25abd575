"""
Sales Engine

Composition root holding one repository per entity type. It is the only
path the analyst and the API use to reach data.
"""

from typing import Dict, Mapping, Optional

import structlog

from sales_engine.config import ENTITY_NAMES, Settings, get_settings
from sales_engine.ingestion import DataSource
from sales_engine.repository import (
    CustomerRepository,
    InvoiceItemRepository,
    InvoiceRepository,
    ItemRepository,
    MerchantRepository,
    Repository,
    TransactionRepository,
)

logger = structlog.get_logger(__name__)


class SalesEngine:
    """
    Loaded sales dataset.

    Example:
        engine = SalesEngine.from_csv({
            "items": "./data/items.csv",
            "merchants": "./data/merchants.csv",
        })
        engine.analyst.average_items_per_merchant()
    """

    def __init__(self) -> None:
        self.merchants = MerchantRepository()
        self.items = ItemRepository()
        self.invoices = InvoiceRepository()
        self.invoice_items = InvoiceItemRepository()
        self.transactions = TransactionRepository()
        self.customers = CustomerRepository()

    @classmethod
    def from_csv(cls, sources: Mapping[str, DataSource]) -> "SalesEngine":
        """
        Build an engine from entity name -> data source.

        Entity types without a source stay empty.
        """
        unknown = set(sources) - set(ENTITY_NAMES)
        if unknown:
            raise ValueError(f"Unknown entity type(s): {sorted(unknown)}; expected {list(ENTITY_NAMES)}")

        engine = cls()
        for name in ENTITY_NAMES:
            source = sources.get(name)
            if source is not None:
                engine.repository(name).load(source)

        logger.info(
            "Sales engine built",
            loaded=[name for name in ENTITY_NAMES if sources.get(name) is not None],
            rows=engine.row_counts(),
        )
        return engine

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SalesEngine":
        """Build an engine from the configured data sources"""
        settings = settings or get_settings()
        return cls.from_csv(settings.data.sources())

    def repository(self, name: str) -> Repository:
        """Repository for an entity name such as "invoice_items" """
        if name not in ENTITY_NAMES:
            raise ValueError(f"Unknown entity type: {name}")
        return getattr(self, name)

    def row_counts(self) -> Dict[str, int]:
        return {name: len(self.repository(name)) for name in ENTITY_NAMES}

    @property
    def analyst(self):
        """A SalesAnalyst over this engine"""
        from sales_engine.analytics import SalesAnalyst

        return SalesAnalyst(self)
