"""
CSV Source Loader

Reads one entity table (header row, comma-delimited) into raw string rows.
Supports:
- CSV files on disk, read with Polars
- In-memory Polars DataFrames (cells are cast to strings)
- Required-column validation before any row is decoded
"""

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import polars as pl
import structlog

from sales_engine.exceptions import MalformedRecordError, SchemaError

logger = structlog.get_logger(__name__)

DataSource = Union[str, Path, pl.DataFrame]

RawRow = Dict[str, Optional[str]]


def describe_source(source: DataSource) -> str:
    """Human-readable name of a data source for logs and errors"""
    if isinstance(source, pl.DataFrame):
        return "<dataframe>"
    return str(source)


@dataclass
class CSVLoader:
    """
    Raw row reader for entity tables.

    Every cell is read as a string; typing happens in the record decoders
    so that a bad cell can be reported with its row and column.

    Example:
        loader = CSVLoader()
        rows = loader.read("data/merchants.csv", "merchant", ["id", "name"])
    """
    delimiter: str = ","

    def _read_csv(self, path: Path, entity: str) -> pl.DataFrame:
        """Read CSV file with Polars, all columns as strings"""
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        try:
            return pl.read_csv(
                path,
                separator=self.delimiter,
                infer_schema_length=0,
            )
        except pl.exceptions.NoDataError:
            return pl.DataFrame()
        except pl.exceptions.PolarsError as e:
            # ragged lines and broken quoting surface here
            ragged = self._find_ragged_row(path)
            if ragged is None:
                raise MalformedRecordError(entity, str(e), source=str(path)) from e
            row, found, expected = ragged
            raise MalformedRecordError(
                entity,
                f"expected {expected} fields, found {found}",
                row=row,
                source=str(path),
            ) from e

    def _find_ragged_row(self, path: Path) -> Optional[Tuple[int, int, int]]:
        """
        First data row whose field count differs from the header.

        Returns (1-based data row, fields found, fields expected), or None
        when every row has the header's width.
        """
        with path.open(newline="", encoding="utf-8") as fh:
            reader = csv.reader(fh, delimiter=self.delimiter)
            try:
                header = next(reader, None)
                if header is None:
                    return None
                for row_number, fields in enumerate(reader, start=1):
                    if fields and len(fields) != len(header):
                        return row_number, len(fields), len(header)
            except csv.Error:
                return None
        return None

    def _to_strings(self, df: pl.DataFrame) -> pl.DataFrame:
        """Cast every column of an in-memory frame to strings"""
        if df.width == 0:
            return df
        return df.with_columns(pl.all().cast(pl.Utf8))

    def _validate_schema(
        self,
        df: pl.DataFrame,
        entity: str,
        required_columns: Iterable[str],
        source_name: str,
    ) -> None:
        """Raise SchemaError when required columns are absent"""
        missing = set(required_columns) - set(df.columns)
        if missing:
            raise SchemaError(entity, missing, source=source_name)

    def read(
        self,
        source: DataSource,
        entity: str,
        required_columns: Iterable[str],
    ) -> List[RawRow]:
        """
        Read a data source into raw rows.

        Args:
            source: CSV path or Polars DataFrame
            entity: Entity name used in errors
            required_columns: Columns that must be present in the header

        Returns:
            List of column -> cell string dicts, in source order
        """
        source_name = describe_source(source)

        if isinstance(source, pl.DataFrame):
            df = self._to_strings(source)
        else:
            df = self._read_csv(Path(source), entity)

        self._validate_schema(df, entity, required_columns, source_name)

        logger.debug(
            "Read source",
            entity=entity,
            source=source_name,
            rows=len(df),
        )
        return list(df.iter_rows(named=True))
