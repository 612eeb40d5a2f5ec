"""
Descriptive statistics over small numeric arrays.

Every function here is pure and deterministic. Degenerate inputs (empty
arrays, zero variance, zero denominators) produce values instead of
exceptions so reports can always be rendered.
"""

import math
import re
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel

_AGE_BRACKET = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


class BasicStats(BaseModel):
    """Mean and range of a numeric array."""

    mean: float = 0.0
    min: float = 0.0
    max: float = 0.0


class ExpressionStats(BasicStats):
    """Basic stats plus lower median and non-zero detection counts."""

    median: float = 0.0
    non_zero_count: int = 0
    non_zero_percent: float = 0.0


def basic_stats(values: Sequence[float]) -> BasicStats:
    """
    Compute mean, min and max.

    Args:
        values: Numeric values

    Returns:
        BasicStats (all zero for empty input)
    """
    if not values:
        return BasicStats()
    return BasicStats(
        mean=sum(values) / len(values),
        min=min(values),
        max=max(values),
    )


def expression_stats(values: Sequence[float]) -> ExpressionStats:
    """
    Compute expression summary statistics.

    The median is the element at index ``n // 2`` of the ascending-sorted
    values, i.e. the upper of the two central elements for even ``n``.
    Only strictly positive values count as detected expression.

    Args:
        values: Per-sample expression values

    Returns:
        ExpressionStats (all zero for empty input)
    """
    if not values:
        return ExpressionStats()

    ordered = sorted(values)
    non_zero = sum(1 for v in values if v > 0)
    return ExpressionStats(
        mean=sum(values) / len(values),
        median=ordered[len(ordered) // 2],
        min=ordered[0],
        max=ordered[-1],
        non_zero_count=non_zero,
        non_zero_percent=non_zero / len(values) * 100,
    )


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson product-moment correlation coefficient.

    Returns 0 for mismatched or empty inputs and when either vector has
    zero variance.
    """
    n = len(x)
    if n != len(y) or n == 0:
        return 0.0

    sum_x = sum(x)
    sum_y = sum(y)
    sum_xy = sum(a * b for a, b in zip(x, y))
    sum_x2 = sum(a * a for a in x)
    sum_y2 = sum(b * b for b in y)

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if variance_product <= 0:
        return 0.0
    denominator = math.sqrt(variance_product)
    if denominator == 0:
        return 0.0
    return numerator / denominator


def correlation_strength(r: float) -> str:
    """Label a correlation coefficient as Strong, Moderate or Weak."""
    magnitude = abs(r)
    if magnitude > 0.7:
        return "Strong"
    if magnitude > 0.4:
        return "Moderate"
    return "Weak"


def fold_change(mean_a: float, mean_b: float) -> float:
    """
    Ratio of two group means.

    Division by zero follows IEEE semantics: ``inf``/``-inf`` for a
    non-zero numerator and ``nan`` when both means are zero.
    """
    if mean_b == 0:
        if mean_a == 0 or math.isnan(mean_a):
            return math.nan
        return math.copysign(math.inf, mean_a) * math.copysign(1.0, mean_b)
    return mean_a / mean_b


def log2_fold_change(ratio: float) -> float:
    """log2 of a fold change; ``-inf`` at 0 and ``nan`` for negatives."""
    if math.isnan(ratio) or ratio < 0:
        return math.nan
    if ratio == 0:
        return -math.inf
    return math.log2(ratio)


def percentage(part: float, whole: float) -> float:
    """Percentage of part in whole, 0 when whole is 0."""
    if not whole:
        return 0.0
    return part / whole * 100


def age_bracket_midpoint(bracket: Optional[str]) -> Optional[float]:
    """
    Midpoint of a ``"min-max"`` age bracket such as ``"60-69"``.

    Returns None when the bracket cannot be parsed.
    """
    if not bracket:
        return None
    match = _AGE_BRACKET.match(bracket)
    if not match:
        return None
    low, high = int(match.group(1)), int(match.group(2))
    return (low + high) / 2


def average_age(brackets: Iterable[Optional[str]]) -> Optional[float]:
    """
    Average of bracket midpoints, skipping brackets that fail to parse.

    Returns None when no bracket could be parsed.
    """
    midpoints = [
        midpoint
        for midpoint in (age_bracket_midpoint(b) for b in brackets)
        if midpoint is not None
    ]
    if not midpoints:
        return None
    return sum(midpoints) / len(midpoints)
