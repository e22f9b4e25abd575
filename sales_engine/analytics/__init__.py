"""
Analytics Module

Derived statistics, outlier classification and revenue rankings.
"""
from .analyst import DAY_NAMES, MONTH_NAMES, SalesAnalyst
from .statistics import (
    average,
    decimal_average,
    percentage,
    ratio,
    round_half_up,
    standard_deviation,
)

__all__ = [
    "SalesAnalyst",
    "DAY_NAMES",
    "MONTH_NAMES",
    "average",
    "decimal_average",
    "percentage",
    "ratio",
    "round_half_up",
    "standard_deviation",
]
