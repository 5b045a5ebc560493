from __future__ import annotations

import math
from collections.abc import Iterable as IterableABC
from numbers import Real
from typing import Dict, Iterable, List, Mapping, Optional

from mining_screener.observability.logging import get_logger
from mining_screener.scoring.normalization import normalize_value

from .metrics import (
    INVALID_RANGE,
    METRIC_NOT_FOUND,
    NULL_VALUE,
    TIER_DENIED,
    Company,
    CompanyScore,
    MetricDefinition,
    MetricRange,
    ScoreComponent,
    is_valid_number,
)
from .tiers import is_access_granted

logger = get_logger(__name__)

SCORE_SCALE = 1000


class ScoringInputError(TypeError):
    """Raised when the scoring engine is called with malformed arguments."""


def evaluate_company(
    company: Company,
    weights: Mapping[str, float],
    ranges: Mapping[str, MetricRange],
    catalog: Mapping[str, MetricDefinition],
    viewer_tier: str,
    *,
    access: Optional[Dict[str, bool]] = None,
) -> CompanyScore:
    """Compute the explainable score of a single company.

    ``access`` memoizes tier decisions per metric key so a batch only asks the
    tier policy once per metric.
    """

    if access is None:
        access = {}
    weighted_sum = 0.0
    weight_sum = 0.0
    breakdown: Dict[str, ScoreComponent] = {}

    for key, weight in weights.items():
        if weight <= 0:
            continue

        metric = catalog.get(key)
        component = ScoreComponent(metric_label=metric.label if metric else key, weight=weight)
        breakdown[key] = component

        if metric is None:
            component.exclude(METRIC_NOT_FOUND, "Metric config not found")
            continue

        if key not in access:
            access[key] = is_access_granted(viewer_tier, metric.access_tier)
        component.is_accessible = access[key]
        if not component.is_accessible:
            component.exclude(TIER_DENIED, f"Requires {metric.access_tier} tier")
            continue

        raw_value = company.value_at(metric.value_path)
        if not is_valid_number(raw_value):
            component.exclude(NULL_VALUE, "Null value")
            continue
        component.raw_value = raw_value

        metric_range = _as_range(ranges.get(key))
        if metric_range is None or not metric_range.is_valid:
            component.exclude(INVALID_RANGE, "Invalid/Missing range")
            continue

        normalized = normalize_value(raw_value, metric_range, higher_is_better=metric.higher_is_better)
        component.normalized_value = normalized
        component.weighted_score = normalized * weight
        component.is_included = True
        weighted_sum += component.weighted_score
        weight_sum += weight

    return CompanyScore(
        company_id=company.company_id,
        company_name=company.name,
        score=_composite(weighted_sum, weight_sum),
        breakdown=breakdown,
    )


def score_companies(
    companies: Iterable[Company],
    weights: Mapping[str, float],
    ranges: Mapping[str, MetricRange],
    catalog: Mapping[str, MetricDefinition],
    viewer_tier: str,
) -> List[CompanyScore]:
    """Score every company and return them ranked best first."""

    company_list = _check_companies(companies)
    _check_weights(weights)

    access: Dict[str, bool] = {}
    scores = [
        evaluate_company(company, weights, ranges, catalog, viewer_tier, access=access)
        for company in company_list
    ]
    logger.debug(
        "Scored %d companies on %d weighted metrics for tier %s",
        len(scores),
        sum(1 for weight in weights.values() if weight > 0),
        viewer_tier,
    )
    return rank_scores(scores)


def rank_scores(scores: Iterable[CompanyScore]) -> List[CompanyScore]:
    """Order by score descending; unscored companies sink to the bottom."""

    return sorted(scores, key=lambda item: item.score if item.score is not None else -1, reverse=True)


def _composite(weighted_sum: float, weight_sum: float) -> Optional[int]:
    if weight_sum <= 0:
        return None
    # Half-up rounding.
    return int(math.floor(SCORE_SCALE * weighted_sum / weight_sum + 0.5))


def _as_range(value: object) -> Optional[MetricRange]:
    if value is None or isinstance(value, MetricRange):
        return value
    try:
        return MetricRange.from_pair(value)
    except (LookupError, TypeError, ValueError):
        return None


def _check_companies(companies: Iterable[Company]) -> List[Company]:
    if isinstance(companies, (str, bytes, Mapping)) or not isinstance(companies, IterableABC):
        raise ScoringInputError(f"companies must be an iterable of Company, got {type(companies).__name__}")
    company_list = list(companies)
    for company in company_list:
        if not isinstance(company, Company):
            raise ScoringInputError(f"Expected Company records, got {type(company).__name__}")
    return company_list


def _check_weights(weights: Mapping[str, float]) -> None:
    if not isinstance(weights, Mapping):
        raise ScoringInputError(f"weights must be a mapping, got {type(weights).__name__}")
    for key, weight in weights.items():
        if isinstance(weight, bool) or not isinstance(weight, Real):
            raise ScoringInputError(f"Weight for {key!r} must be a number, got {weight!r}")
        if not is_valid_number(weight):
            raise ScoringInputError(f"Weight for {key!r} must be finite, got {weight!r}")
