"""
Sales Dataset Generator

Writes merchants, items, invoices, invoice_items, transactions and
customers CSVs in the layout SalesEngine.from_csv reads.

Usage:
    python scripts/generate_dataset.py --output data/generated --merchants 475
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from sales_engine.config import get_settings
from sales_engine.config.logging import configure_logging
from sales_engine.data import SalesDataGenerator

OUTPUT_DIR = Path(__file__).parent.parent / "data" / "generated"


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic sales dataset")
    parser.add_argument("--output", type=Path, default=OUTPUT_DIR)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--merchants", type=int, default=475)
    parser.add_argument("--items", type=int, default=1367)
    parser.add_argument("--customers", type=int, default=1000)
    parser.add_argument("--invoices", type=int, default=4985)
    args = parser.parse_args()

    configure_logging(get_settings())

    paths = SalesDataGenerator(seed=args.seed).generate_all(
        args.output,
        n_merchants=args.merchants,
        n_items=args.items,
        n_customers=args.customers,
        n_invoices=args.invoices,
    )

    print("Dataset written:")
    for name, path in paths.items():
        print(f"   {name}: {path}")
    print("\nServe it with:")
    for name, path in paths.items():
        print(f"   export SALES_DATA_{name.upper()}={path}")


if __name__ == "__main__":
    main()
