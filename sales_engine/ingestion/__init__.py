"""
Data Ingestion Module
"""
from .csv_loader import CSVLoader, DataSource, describe_source
from .parsers import RowDecoder, parse_enum, parse_int, parse_price, parse_timestamp

__all__ = [
    "CSVLoader",
    "DataSource",
    "describe_source",
    "RowDecoder",
    "parse_enum",
    "parse_int",
    "parse_price",
    "parse_timestamp",
]
