from __future__ import annotations

import math
from collections.abc import Sequence as SequenceABC
from dataclasses import dataclass, field
from decimal import Decimal
from numbers import Real
from typing import Any, Dict, Mapping, Optional, Sequence

# Exclusion reasons recorded on a ScoreComponent.
METRIC_NOT_FOUND = "metric-not-found"
TIER_DENIED = "tier-denied"
NULL_VALUE = "null-value"
INVALID_RANGE = "invalid-range"

EXCLUSION_REASONS = (METRIC_NOT_FOUND, TIER_DENIED, NULL_VALUE, INVALID_RANGE)


@dataclass(frozen=True, slots=True)
class MetricDefinition:
    """A scoreable company attribute and how to read it."""

    key: str
    label: str
    access_tier: str
    higher_is_better: bool
    value_path: str
    format: str = "number"
    category: str = "financials"
    description: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "key": self.key,
            "label": self.label,
            "access_tier": self.access_tier,
            "higher_is_better": self.higher_is_better,
            "value_path": self.value_path,
            "format": self.format,
            "category": self.category,
            "description": self.description,
        }


@dataclass(slots=True)
class Company:
    """One mining company as returned by the data layer."""

    company_id: int
    name: str
    ticker: Optional[str] = None
    status: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def value_at(self, path: str) -> Any:
        return get_nested_value(self.data, path)


@dataclass(frozen=True, slots=True)
class MetricRange:
    """Population-wide extremes of one metric."""

    minimum: Any
    maximum: Any

    @property
    def is_valid(self) -> bool:
        return is_valid_number(self.minimum) and is_valid_number(self.maximum)

    @property
    def width(self) -> float:
        return float(self.maximum) - float(self.minimum)

    @classmethod
    def from_pair(cls, pair: Sequence[Any]) -> "MetricRange":
        # Mappings are not sequences, so {"min": .., "max": ..} is rejected here.
        if isinstance(pair, (str, bytes)) or not isinstance(pair, SequenceABC) or len(pair) != 2:
            raise ValueError(f"Expected a [min, max] pair, got {pair!r}")
        return cls(minimum=pair[0], maximum=pair[1])

    def to_pair(self) -> list:
        return [self.minimum, self.maximum]


@dataclass(slots=True)
class ScoreComponent:
    """One metric's contribution to one company's score."""

    metric_label: str
    weight: float
    raw_value: Optional[float] = None
    normalized_value: Optional[float] = None
    weighted_score: float = 0.0
    is_included: bool = False
    is_accessible: bool = False
    reason: Optional[str] = None
    detail: Optional[str] = None

    def exclude(self, reason: str, detail: str) -> "ScoreComponent":
        self.reason = reason
        self.detail = detail
        return self

    def to_dict(self) -> Dict[str, object]:
        return {
            "metric_label": self.metric_label,
            "raw_value": self.raw_value,
            "normalized_value": self.normalized_value,
            "weight": self.weight,
            "weighted_score": self.weighted_score,
            "is_included": self.is_included,
            "is_accessible": self.is_accessible,
            "reason": self.reason,
            "detail": self.detail,
        }


@dataclass(slots=True)
class CompanyScore:
    company_id: int
    company_name: str
    score: Optional[int]
    breakdown: Dict[str, ScoreComponent] = field(default_factory=dict)

    @property
    def included_count(self) -> int:
        return sum(1 for component in self.breakdown.values() if component.is_included)

    def to_dict(self) -> Dict[str, object]:
        return {
            "company_id": self.company_id,
            "company_name": self.company_name,
            "score": self.score,
            "included_metrics": self.included_count,
            "breakdown": {key: component.to_dict() for key, component in self.breakdown.items()},
        }


def clamp(value: float, min_value: float = 0.0, max_value: float = 1.0) -> float:
    """Ensure a value stays within the 0-1 range."""

    return max(min_value, min(max_value, value))


def is_valid_number(value: Any) -> bool:
    """True for real numbers (or Decimals) that fit a finite float.

    Booleans and numeric strings do not count. Integers too large for a float
    are treated as missing rather than raising.
    """

    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        return False
    try:
        return math.isfinite(float(value))
    except (OverflowError, ValueError):
        return False


def get_nested_value(payload: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Follow a dotted path such as ``financials.revenue_value`` into nested mappings."""

    node: Any = payload
    for key in path.split("."):
        if not isinstance(node, Mapping) or key not in node:
            return default
        node = node[key]
    return node
