from __future__ import annotations

from mining_screener.core.metrics import MetricRange, clamp

RANGE_EPSILON = 1e-9


def normalize_value(value: float, metric_range: MetricRange, *, higher_is_better: bool = True) -> float:
    """Place ``value`` within the population range as a 0-1 position.

    A zero-width (or inverted) range maps qualifying values to the midpoint and
    anything below the minimum to 0. Polarity is applied after clamping.
    """

    value = float(value)
    minimum = float(metric_range.minimum)
    width = float(metric_range.maximum) - minimum
    if width > RANGE_EPSILON:
        normalized = clamp((value - minimum) / width)
    elif value >= minimum:
        normalized = 0.5
    else:
        normalized = 0.0

    if not higher_is_better:
        normalized = 1.0 - normalized
    return normalized
