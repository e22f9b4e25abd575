"""
Field Parsers

Decoders from raw CSV cell strings to typed values:
- integers (ids, foreign keys, quantities)
- fixed-point prices stored as integer cents
- timestamps in the handful of layouts the exports use
- closed enumerations
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

from sales_engine.exceptions import InvalidEnumValue, MalformedRecordError

E = TypeVar("E", bound=Enum)

CENTS = Decimal("0.01")

TIMESTAMP_FORMATS = [
    "%Y-%m-%d %H:%M:%S UTC",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%d",
]


def parse_int(value: str) -> int:
    """Parse an integer cell"""
    return int(str(value).strip())


def parse_price(value: str) -> Decimal:
    """
    Parse a price cell into dollars.

    Whole numbers are cents ("1300" -> 13.00); values with a decimal point
    are already dollars.
    """
    raw = str(value).strip().replace("$", "").replace(",", "")
    try:
        amount = Decimal(raw)
    except InvalidOperation as e:
        raise ValueError(f"invalid price {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"invalid price {value!r}")
    if "." not in raw:
        amount = amount / 100
    return amount.quantize(CENTS)


def parse_timestamp(value: str) -> datetime:
    """Parse a timestamp cell, trying each known layout in turn"""
    raw = str(value).strip()
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    raise ValueError(f"unrecognized timestamp {value!r}")


def parse_enum(value: str, enum_cls: Type[E]) -> E:
    """Parse a closed-set value; raises ValueError outside the set"""
    raw = str(value).strip().lower()
    return enum_cls(raw)


class RowDecoder:
    """
    Typed accessors over one raw row.

    Every failure is raised as MalformedRecordError carrying the entity,
    row number and column so the offending row can be found in the source.
    """

    def __init__(
        self,
        entity: str,
        row: Mapping[str, Any],
        row_number: int,
        source: Optional[str] = None,
    ):
        self.entity = entity
        self.row = row
        self.row_number = row_number
        self.source = source

    def _fail(self, column: str, message: str, error_cls: Type[MalformedRecordError] = MalformedRecordError):
        return error_cls(
            self.entity,
            message,
            row=self.row_number,
            column=column,
            value=self.row.get(column),
            source=self.source,
        )

    def raw(self, column: str) -> Optional[str]:
        value = self.row.get(column)
        if value is None:
            return None
        return str(value)

    def required(self, column: str) -> str:
        value = self.raw(column)
        if value is None or value.strip() == "":
            raise self._fail(column, "missing value")
        return value

    def text(self, column: str) -> str:
        """Free text; empty cells decode to an empty string"""
        return self.raw(column) or ""

    def integer(self, column: str) -> int:
        value = self.required(column)
        try:
            return parse_int(value)
        except ValueError:
            raise self._fail(column, f"invalid integer {value!r}")

    def price(self, column: str) -> Decimal:
        value = self.required(column)
        try:
            return parse_price(value)
        except ValueError as e:
            raise self._fail(column, str(e))

    def timestamp(self, column: str) -> datetime:
        value = self.required(column)
        try:
            return parse_timestamp(value)
        except ValueError as e:
            raise self._fail(column, str(e))

    def enum(self, column: str, enum_cls: Type[E]) -> E:
        value = self.required(column)
        try:
            return parse_enum(value, enum_cls)
        except ValueError:
            allowed = ", ".join(member.value for member in enum_cls)
            raise self._fail(
                column,
                f"{value!r} is not one of: {allowed}",
                error_cls=InvalidEnumValue,
            )
