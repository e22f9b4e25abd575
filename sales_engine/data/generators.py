"""
Synthetic Data Generator

Generates a coherent sales dataset for testing and development.
Includes:
- Merchants and the items they list
- Customers
- Invoices with line items priced from the item catalog
- Transactions, some failed, some invoices left without any

Output uses exactly the CSV layout the loaders read: integer cents for
prices, "YYYY-MM-DD" invoice dates and "YYYY-MM-DD HH:MM:SS UTC" timestamps.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Union

import numpy as np
import polars as pl
import structlog
from faker import Faker

from sales_engine.config import ENTITY_NAMES

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

INVOICE_STATUSES = [
    ("pending", 0.30),
    ("shipped", 0.56),
    ("returned", 0.14),
]

TRANSACTION_SUCCESS_RATE = 0.80

# Transactions per invoice; zero leaves the invoice pending
TRANSACTIONS_PER_INVOICE = [0, 1, 2, 3]
TRANSACTIONS_PER_INVOICE_WEIGHTS = [0.10, 0.60, 0.20, 0.10]

MAX_LINES_PER_INVOICE = 8
MAX_QUANTITY = 10

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"
DATE_FORMAT = "%Y-%m-%d"


# =============================================================================
# GENERATOR
# =============================================================================

class SalesDataGenerator:
    """
    Seeded, reproducible generator for the six sales tables.

    Example:
        generator = SalesDataGenerator(seed=7)
        paths = generator.generate_all("./data/generated", n_merchants=50)
        engine = SalesEngine.from_csv(paths)
    """

    def __init__(
        self,
        seed: int = 42,
        start: datetime = datetime(2012, 1, 1),
        end: datetime = datetime(2016, 12, 31),
    ):
        self.fake = Faker()
        self.fake.seed_instance(seed)
        self.rng = np.random.default_rng(seed)
        self.start = start
        self.end = end

    def _moment(self) -> datetime:
        return self.fake.date_time_between_dates(datetime_start=self.start, datetime_end=self.end)

    def _stamp(self) -> str:
        return self._moment().strftime(TIMESTAMP_FORMAT)

    def merchants(self, n: int) -> pl.DataFrame:
        """Generate n merchants"""
        rows = []
        for merchant_id in range(1, n + 1):
            created = self._moment()
            rows.append({
                "id": merchant_id,
                "name": self.fake.company(),
                "created_at": created.strftime(DATE_FORMAT),
                "updated_at": created.strftime(DATE_FORMAT),
            })
        return pl.DataFrame(rows, schema=["id", "name", "created_at", "updated_at"])

    def items(self, n: int, merchant_ids: List[int]) -> pl.DataFrame:
        """Generate n items spread across the given merchants"""
        # Skewed prices: most items cheap, a few expensive
        prices = np.round(self.rng.lognormal(mean=8.0, sigma=1.0, size=n)).astype(int) + 1
        owners = self.rng.choice(merchant_ids, size=n) if merchant_ids else [0] * n

        rows = []
        for i in range(n):
            stamp = self._stamp()
            rows.append({
                "id": 263_395_237 + i,
                "name": f"{self.fake.word().title()} {self.fake.word()}",
                "description": self.fake.sentence(nb_words=12),
                "unit_price": int(prices[i]),
                "merchant_id": int(owners[i]),
                "created_at": stamp,
                "updated_at": stamp,
            })
        return pl.DataFrame(
            rows,
            schema=["id", "name", "description", "unit_price", "merchant_id", "created_at", "updated_at"],
        )

    def customers(self, n: int) -> pl.DataFrame:
        """Generate n customers"""
        rows = []
        for customer_id in range(1, n + 1):
            stamp = self._stamp()
            rows.append({
                "id": customer_id,
                "first_name": self.fake.first_name(),
                "last_name": self.fake.last_name(),
                "created_at": stamp,
                "updated_at": stamp,
            })
        return pl.DataFrame(rows, schema=["id", "first_name", "last_name", "created_at", "updated_at"])

    def invoices(self, n: int, customer_ids: List[int], merchant_ids: List[int]) -> pl.DataFrame:
        """Generate n invoices between random customers and merchants"""
        statuses = self.rng.choice(
            [s for s, _ in INVOICE_STATUSES],
            size=n,
            p=[p for _, p in INVOICE_STATUSES],
        )
        customers = self.rng.choice(customer_ids, size=n)
        merchants = self.rng.choice(merchant_ids, size=n)

        rows = []
        for i in range(n):
            created = self._moment()
            rows.append({
                "id": i + 1,
                "customer_id": int(customers[i]),
                "merchant_id": int(merchants[i]),
                "status": str(statuses[i]),
                "created_at": created.strftime(DATE_FORMAT),
                "updated_at": created.strftime(DATE_FORMAT),
            })
        return pl.DataFrame(
            rows,
            schema=["id", "customer_id", "merchant_id", "status", "created_at", "updated_at"],
        )

    def invoice_items(self, invoices_df: pl.DataFrame, items_df: pl.DataFrame) -> pl.DataFrame:
        """Line items for each invoice, drawn from its merchant's catalog"""
        catalog: Dict[int, List[dict]] = {}
        for item in items_df.select(["id", "unit_price", "merchant_id"]).to_dicts():
            catalog.setdefault(item["merchant_id"], []).append(item)
        every_item = [item for listed in catalog.values() for item in listed]

        rows = []
        if not every_item:
            return pl.DataFrame(
                rows,
                schema=["id", "item_id", "invoice_id", "quantity", "unit_price", "created_at", "updated_at"],
            )

        for invoice in invoices_df.select(["id", "merchant_id"]).to_dicts():
            available = catalog.get(invoice["merchant_id"]) or every_item
            n_lines = int(self.rng.integers(1, MAX_LINES_PER_INVOICE + 1))
            for _ in range(n_lines):
                item = available[int(self.rng.integers(0, len(available)))]
                stamp = self._stamp()
                rows.append({
                    "id": len(rows) + 1,
                    "item_id": item["id"],
                    "invoice_id": invoice["id"],
                    "quantity": int(self.rng.integers(1, MAX_QUANTITY + 1)),
                    "unit_price": item["unit_price"],
                    "created_at": stamp,
                    "updated_at": stamp,
                })
        return pl.DataFrame(
            rows,
            schema=["id", "item_id", "invoice_id", "quantity", "unit_price", "created_at", "updated_at"],
        )

    def transactions(self, invoices_df: pl.DataFrame) -> pl.DataFrame:
        """Zero or more payment attempts per invoice"""
        rows = []
        for invoice_id in invoices_df["id"].to_list():
            attempts = int(self.rng.choice(TRANSACTIONS_PER_INVOICE, p=TRANSACTIONS_PER_INVOICE_WEIGHTS))
            for _ in range(attempts):
                stamp = self._stamp()
                success = self.rng.random() < TRANSACTION_SUCCESS_RATE
                rows.append({
                    "id": len(rows) + 1,
                    "invoice_id": invoice_id,
                    "credit_card_number": self.fake.credit_card_number(card_type="visa16"),
                    "credit_card_expiration_date": self.fake.credit_card_expire(date_format="%m%y"),
                    "result": "success" if success else "failed",
                    "created_at": stamp,
                    "updated_at": stamp,
                })
        return pl.DataFrame(
            rows,
            schema=[
                "id", "invoice_id", "credit_card_number", "credit_card_expiration_date",
                "result", "created_at", "updated_at",
            ],
        )

    def generate(
        self,
        n_merchants: int = 100,
        n_items: int = 1000,
        n_customers: int = 500,
        n_invoices: int = 2000,
    ) -> Dict[str, pl.DataFrame]:
        """Generate the complete dataset, keyed by entity name"""
        if n_invoices and not (n_merchants and n_customers):
            raise ValueError("Invoices need at least one merchant and one customer")

        merchants_df = self.merchants(n_merchants)
        merchant_ids = merchants_df["id"].to_list()
        items_df = self.items(n_items, merchant_ids)
        customers_df = self.customers(n_customers)
        invoices_df = self.invoices(n_invoices, customers_df["id"].to_list(), merchant_ids)

        data = {
            "merchants": merchants_df,
            "items": items_df,
            "invoices": invoices_df,
            "invoice_items": self.invoice_items(invoices_df, items_df),
            "transactions": self.transactions(invoices_df),
            "customers": customers_df,
        }
        logger.info("Dataset generated", rows={name: len(df) for name, df in data.items()})
        return data

    def save(self, data: Dict[str, pl.DataFrame], output_dir: Union[str, Path]) -> Dict[str, Path]:
        """Write each table to <output_dir>/<entity>.csv"""
        output = Path(output_dir)
        output.mkdir(parents=True, exist_ok=True)

        paths = {}
        for name in ENTITY_NAMES:
            if name not in data:
                continue
            path = output / f"{name}.csv"
            data[name].write_csv(path)
            paths[name] = path
            logger.info("Table saved", entity=name, rows=len(data[name]), path=str(path))
        return paths

    def generate_all(
        self,
        output_dir: Union[str, Path],
        n_merchants: int = 100,
        n_items: int = 1000,
        n_customers: int = 500,
        n_invoices: int = 2000,
    ) -> Dict[str, Path]:
        """Generate and save; returns entity name -> CSV path"""
        data = self.generate(
            n_merchants=n_merchants,
            n_items=n_items,
            n_customers=n_customers,
            n_invoices=n_invoices,
        )
        return self.save(data, output_dir)
