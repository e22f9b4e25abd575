"""
Statistics Helpers

Mean, sample standard deviation and threshold classification used by the
outlier reports. Means are accumulated in Decimal so that cent values are
not disturbed by float rounding before the final two-place rounding.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Sequence, Union

import numpy as np

from sales_engine.exceptions import EmptyDatasetError

Number = Union[int, float, Decimal]

TWO_PLACES = Decimal("0.01")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Number, places: Decimal = TWO_PLACES) -> Decimal:
    """Round to two places, halves away from zero"""
    return _to_decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def decimal_average(values: Iterable[Number], statistic: str = "average") -> Decimal:
    """Mean rounded to two places, as a Decimal"""
    values = [_to_decimal(v) for v in values]
    if not values:
        raise EmptyDatasetError(statistic, 0)
    return round_half_up(sum(values, Decimal("0")) / len(values))


def average(values: Iterable[Number], statistic: str = "average") -> float:
    """Mean rounded to two places"""
    return float(decimal_average(values, statistic))


def ratio(numerator: Number, denominator: Number, statistic: str = "ratio") -> float:
    """numerator / denominator rounded to two places"""
    if denominator == 0:
        raise EmptyDatasetError(statistic, 0)
    return float(round_half_up(_to_decimal(numerator) / _to_decimal(denominator)))


def percentage(part: Number, whole: Number, statistic: str = "percentage") -> float:
    """part as a percentage of whole, rounded to two places"""
    if whole == 0:
        raise EmptyDatasetError(statistic, 0)
    return float(round_half_up(_to_decimal(part) * 100 / _to_decimal(whole)))


def standard_deviation(
    values: Sequence[Number],
    mean: Number,
    statistic: str = "standard deviation",
) -> float:
    """
    Sample standard deviation around a given mean, rounded to two places.

    sqrt(sum((x - mean)^2) / (n - 1)); fewer than two values raise
    EmptyDatasetError, which is a ZeroDivisionError.
    """
    count = len(values)
    if count <= 1:
        raise EmptyDatasetError(statistic, count)

    arr = np.asarray([float(v) for v in values], dtype=float)
    squared = np.square(arr - float(mean))
    deviation = np.sqrt(squared.sum() / (count - 1))
    return float(round_half_up(float(deviation)))


def upper_threshold(mean: Number, stddev: Number, deviations: float) -> float:
    """mean + deviations * stddev"""
    return float(mean) + float(stddev) * deviations


def lower_threshold(mean: Number, stddev: Number, deviations: float) -> float:
    """mean - deviations * stddev"""
    return float(mean) - float(stddev) * deviations


def indices_above(values: Sequence[Number], threshold: float) -> List[int]:
    """Positions whose value is strictly above threshold"""
    arr = np.asarray([float(v) for v in values], dtype=float)
    return [int(i) for i in np.flatnonzero(arr > threshold)]


def indices_below(values: Sequence[Number], threshold: float) -> List[int]:
    """Positions whose value is strictly below threshold"""
    arr = np.asarray([float(v) for v in values], dtype=float)
    return [int(i) for i in np.flatnonzero(arr < threshold)]
