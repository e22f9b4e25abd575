"""
Error Taxonomy

Load-time errors abort the load of one collection. Statistical degenerate
cases surface as EmptyDatasetError. A missed id lookup is never an error.
"""

from typing import Any, Iterable, Optional


class SalesEngineError(Exception):
    """Base class for all sales engine errors"""


class SchemaError(SalesEngineError):
    """A data source is missing required columns"""

    def __init__(self, entity: str, missing: Iterable[str], source: Optional[str] = None):
        self.entity = entity
        self.missing = sorted(missing)
        self.source = source
        super().__init__(
            f"{entity} source {source or '<dataframe>'} is missing required column(s): "
            f"{', '.join(self.missing)}"
        )


class MalformedRecordError(SalesEngineError):
    """A data row could not be decoded into a record"""

    def __init__(
        self,
        entity: str,
        message: str,
        row: Optional[int] = None,
        column: Optional[str] = None,
        value: Any = None,
        source: Optional[str] = None,
    ):
        self.entity = entity
        self.row = row
        self.column = column
        self.value = value
        self.source = source
        location = f"row {row}" if row is not None else "source"
        if column:
            location += f", column '{column}'"
        super().__init__(f"{entity} {location}: {message}")


class InvalidEnumValue(MalformedRecordError):
    """An enum column holds a value outside its closed set"""


class EmptyDatasetError(SalesEngineError, ZeroDivisionError):
    """A statistic was requested over too few values"""

    def __init__(self, statistic: str, count: int = 0):
        self.statistic = statistic
        self.count = count
        super().__init__(f"Cannot compute {statistic} over {count} value(s)")
