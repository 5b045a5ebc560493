"""Tests for the weighted score aggregator and ranking."""
from __future__ import annotations

import math
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mining_screener.core.catalog import MetricCatalog
from mining_screener.core.metrics import (
    INVALID_RANGE,
    METRIC_NOT_FOUND,
    NULL_VALUE,
    TIER_DENIED,
    CompanyScore,
    MetricRange,
)
from mining_screener.core.scoring_engine import (
    ScoringInputError,
    evaluate_company,
    rank_scores,
    score_companies,
)
from tests.support.factories import make_company, make_metric

METRIC_KEYS = ("revenue", "debt", "ebitda")

HYPOTHESIS_CATALOG = MetricCatalog(
    [
        make_metric("revenue", tier="free"),
        make_metric("debt", tier="medium", higher_is_better=False),
        make_metric("ebitda", tier="premium"),
    ]
)


def _single_metric_catalog(*, higher_is_better: bool = True, tier: str = "free") -> MetricCatalog:
    return MetricCatalog([make_metric("revenue", tier=tier, higher_is_better=higher_is_better)])


# --- Example scenarios -----------------------------------------------------


def test_single_metric_midpoint_scores_500() -> None:
    results = score_companies(
        [make_company(revenue=50.0)],
        {"revenue": 100},
        {"revenue": MetricRange(0.0, 100.0)},
        _single_metric_catalog(),
        "free",
    )

    assert results[0].score == 500
    component = results[0].breakdown["revenue"]
    assert component.normalized_value == pytest.approx(0.5)
    assert component.weighted_score == pytest.approx(50.0)
    assert component.is_included and component.is_accessible
    assert component.reason is None


def test_lower_is_better_midpoint_is_symmetric() -> None:
    results = score_companies(
        [make_company(revenue=50.0)],
        {"revenue": 100},
        {"revenue": MetricRange(0.0, 100.0)},
        _single_metric_catalog(higher_is_better=False),
        "free",
    )

    assert results[0].score == 500


def test_tier_denied_metric_does_not_affect_score(catalog, ranges) -> None:
    company = make_company(revenue=80.0, ebitda=10.0)

    result = evaluate_company(company, {"revenue": 50, "ebitda": 100}, ranges, catalog, "free")

    ebitda = result.breakdown["ebitda"]
    assert ebitda.reason == TIER_DENIED
    assert ebitda.detail == "Requires premium tier"
    assert not ebitda.is_included and not ebitda.is_accessible
    assert ebitda.raw_value is None
    assert result.score == 800


def test_zero_weight_metric_is_ignored(catalog, ranges) -> None:
    company = make_company(revenue=25.0, debt=0.0)

    result = evaluate_company(company, {"revenue": 100, "debt": 0}, ranges, catalog, "premium")

    assert "debt" not in result.breakdown
    assert result.score == 250


def test_no_positive_weights_yields_null_score_ranked_last(catalog, ranges) -> None:
    weighted = make_company(1, revenue=10.0)
    unweighted = make_company(2, revenue=90.0)

    results = score_companies([unweighted, weighted], {"revenue": 0}, ranges, catalog, "free")

    assert [result.score for result in results] == [None, None]

    scored = evaluate_company(weighted, {"revenue": 100}, ranges, catalog, "free")
    empty = evaluate_company(unweighted, {}, ranges, catalog, "free")
    assert [item.company_id for item in rank_scores([empty, scored])] == [1, 2]
    assert empty.score is None
    assert empty.breakdown == {}


def test_degenerate_range_participates_at_midpoint() -> None:
    results = score_companies(
        [make_company(revenue=15.0)],
        {"revenue": 100},
        {"revenue": MetricRange(10.0, 10.0)},
        _single_metric_catalog(),
        "free",
    )

    assert results[0].breakdown["revenue"].normalized_value == 0.5
    assert results[0].score == 500


# --- Exclusion reasons -----------------------------------------------------


def test_unknown_metric_is_reported(catalog, ranges) -> None:
    result = evaluate_company(make_company(revenue=50.0), {"stale_metric": 40}, ranges, catalog, "premium")

    component = result.breakdown["stale_metric"]
    assert component.reason == METRIC_NOT_FOUND
    assert component.metric_label == "stale_metric"
    assert component.is_accessible is False
    assert result.score is None


@pytest.mark.parametrize("raw", [None, float("nan"), float("inf"), "42", True])
def test_non_numeric_values_are_null(catalog, ranges, raw) -> None:
    result = evaluate_company(make_company(revenue=raw), {"revenue": 100}, ranges, catalog, "free")

    component = result.breakdown["revenue"]
    assert component.reason == NULL_VALUE
    assert component.raw_value is None
    assert component.is_accessible is True
    assert result.score is None


def test_missing_value_path_is_null(catalog, ranges) -> None:
    result = evaluate_company(make_company(), {"revenue": 100}, ranges, catalog, "free")

    assert result.breakdown["revenue"].reason == NULL_VALUE


@pytest.mark.parametrize(
    "metric_range",
    [None, MetricRange(None, 10.0), MetricRange(0.0, float("inf")), MetricRange("0", "10"), "bogus"],
)
def test_missing_or_non_finite_range_is_invalid(catalog, metric_range) -> None:
    ranges = {} if metric_range is None else {"revenue": metric_range}

    result = evaluate_company(make_company(revenue=5.0), {"revenue": 100}, ranges, catalog, "free")

    component = result.breakdown["revenue"]
    assert component.reason == INVALID_RANGE
    assert component.raw_value == 5.0
    assert component.normalized_value is None
    assert result.score is None


def test_null_value_is_checked_before_range(catalog) -> None:
    result = evaluate_company(make_company(revenue=None), {"revenue": 100}, {}, catalog, "free")

    assert result.breakdown["revenue"].reason == NULL_VALUE


def test_range_pairs_are_accepted(catalog) -> None:
    result = evaluate_company(make_company(revenue=75.0), {"revenue": 100}, {"revenue": [0, 100]}, catalog, "free")

    assert result.score == 750


def test_mapping_shaped_range_is_invalid(catalog) -> None:
    results = score_companies(
        [make_company(revenue=5.0)], {"revenue": 100}, {"revenue": {"min": 0, "max": 10}}, catalog, "free"
    )

    assert results[0].breakdown["revenue"].reason == INVALID_RANGE
    assert results[0].score is None


def test_value_too_large_for_float_is_null(catalog, ranges) -> None:
    results = score_companies([make_company(revenue=10**400)], {"revenue": 100}, ranges, catalog, "free")

    assert results[0].breakdown["revenue"].reason == NULL_VALUE
    assert results[0].score is None


def test_range_bound_too_large_for_float_is_invalid(catalog) -> None:
    results = score_companies(
        [make_company(revenue=5.0)], {"revenue": 100}, {"revenue": MetricRange(0, 10**400)}, catalog, "free"
    )

    assert results[0].breakdown["revenue"].reason == INVALID_RANGE


def test_decimal_values_are_scored(catalog) -> None:
    result = evaluate_company(
        make_company(revenue=Decimal("50")),
        {"revenue": 100},
        {"revenue": MetricRange(Decimal("0"), Decimal("100"))},
        catalog,
        "free",
    )

    assert result.breakdown["revenue"].is_included
    assert result.score == 500


# --- Aggregation -----------------------------------------------------------


def test_weighted_average_across_metrics(catalog, ranges) -> None:
    company = make_company(revenue=100.0, debt=50.0, ebitda=0.0)

    result = evaluate_company(company, {"revenue": 60, "debt": 20, "ebitda": 20}, ranges, catalog, "premium")

    # revenue 1.0, debt inverted 0.0, ebitda 0.5
    assert result.score == round(1000 * (60 * 1.0 + 20 * 0.0 + 20 * 0.5) / 100)
    assert result.included_count == 3


def test_score_is_scale_invariant(catalog, ranges) -> None:
    company = make_company(revenue=30.0, debt=10.0)

    small = evaluate_company(company, {"revenue": 1, "debt": 3}, ranges, catalog, "medium")
    large = evaluate_company(company, {"revenue": 25, "debt": 75}, ranges, catalog, "medium")

    assert small.score == large.score


def test_excluded_metrics_do_not_dilute_score(catalog, ranges) -> None:
    company = make_company(revenue=40.0, debt=None)

    result = evaluate_company(company, {"revenue": 50, "debt": 50}, ranges, catalog, "medium")

    assert result.breakdown["debt"].reason == NULL_VALUE
    assert result.score == 400


@pytest.mark.parametrize(("revenue_weight", "expected"), [(1, 1), (5, 3)])
def test_scores_round_half_up(catalog, ranges, revenue_weight, expected) -> None:
    # revenue normalizes to 1.0 and debt to 0.0, so the composite is 1000 * w / 2000
    company = make_company(revenue=100.0, debt=50.0)

    result = evaluate_company(
        company, {"revenue": revenue_weight, "debt": 2000 - revenue_weight}, ranges, catalog, "medium"
    )

    assert result.score == expected


def test_inputs_are_not_mutated(catalog, ranges) -> None:
    company = make_company(revenue=40.0)
    weights = {"revenue": 50}

    score_companies([company], weights, ranges, catalog, "free")

    assert company.data == {"financials": {"revenue": 40.0}}
    assert weights == {"revenue": 50}


def test_unknown_viewer_tier_denies_every_metric(catalog, ranges) -> None:
    result = evaluate_company(make_company(revenue=40.0), {"revenue": 50}, ranges, catalog, "gold")

    assert result.breakdown["revenue"].reason == TIER_DENIED
    assert result.score is None


# --- Ranking ---------------------------------------------------------------


def test_rank_scores_orders_descending_with_nulls_last() -> None:
    scores = [
        CompanyScore(company_id=1, company_name="a", score=None),
        CompanyScore(company_id=2, company_name="b", score=300),
        CompanyScore(company_id=3, company_name="c", score=0),
        CompanyScore(company_id=4, company_name="d", score=900),
        CompanyScore(company_id=5, company_name="e", score=300),
        CompanyScore(company_id=6, company_name="f", score=None),
    ]

    ranked = rank_scores(scores)

    assert [item.company_id for item in ranked] == [4, 2, 5, 3, 1, 6]


# --- Caller contract -------------------------------------------------------


@pytest.mark.parametrize("companies", [None, "acme", {"id": 1}, [{"company_id": 1}]])
def test_malformed_companies_fail_fast(catalog, ranges, companies) -> None:
    with pytest.raises(ScoringInputError):
        score_companies(companies, {"revenue": 10}, ranges, catalog, "free")


@pytest.mark.parametrize(
    "weights",
    [None, [("revenue", 10)], {"revenue": "10"}, {"revenue": float("nan")}, {"revenue": 10**400}],
)
def test_malformed_weights_fail_fast(catalog, ranges, weights) -> None:
    with pytest.raises(ScoringInputError):
        score_companies([make_company(revenue=1.0)], weights, ranges, catalog, "free")


def test_scoring_input_error_is_a_type_error() -> None:
    assert issubclass(ScoringInputError, TypeError)


# --- Properties ------------------------------------------------------------

raw_values = st.one_of(
    st.none(),
    st.floats(allow_nan=True, allow_infinity=True),
    st.floats(min_value=-1e6, max_value=1e6),
)
weights_strategy = st.dictionaries(
    st.sampled_from(METRIC_KEYS + ("unknown",)),
    st.floats(min_value=-10, max_value=100, allow_nan=False),
    max_size=4,
)
ranges_strategy = st.dictionaries(
    st.sampled_from(METRIC_KEYS),
    st.tuples(
        st.floats(min_value=-1e6, max_value=1e6),
        st.floats(min_value=-1e6, max_value=1e6),
    ).map(lambda pair: MetricRange(*pair)),
)


@st.composite
def companies_strategy(draw):
    count = draw(st.integers(min_value=0, max_value=6))
    return [
        make_company(index, **{key: draw(raw_values) for key in METRIC_KEYS})
        for index in range(count)
    ]


@settings(max_examples=200)
@given(
    companies=companies_strategy(),
    weights=weights_strategy,
    ranges=ranges_strategy,
    tier=st.sampled_from(("free", "medium", "premium", "bogus")),
)
def test_score_invariants(companies, weights, ranges, tier) -> None:
    results = score_companies(companies, weights, ranges, HYPOTHESIS_CATALOG, tier)

    assert len(results) == len(companies)
    for result in results:
        assert result.score is None or (isinstance(result.score, int) and 0 <= result.score <= 1000)
        assert set(result.breakdown) == {key for key, weight in weights.items() if weight > 0}
        included = [component for component in result.breakdown.values() if component.is_included]
        assert (result.score is None) == (not included)
        for component in result.breakdown.values():
            assert component.is_included == (component.reason is None)
            if component.normalized_value is not None:
                assert 0.0 <= component.normalized_value <= 1.0
        if included:
            weighted = sum(component.weighted_score for component in included)
            total = sum(component.weight for component in included)
            assert result.score == math.floor(1000 * weighted / total + 0.5)

    ordered = [result.score if result.score is not None else -1 for result in results]
    assert ordered == sorted(ordered, reverse=True)


@given(companies=companies_strategy(), weights=weights_strategy, ranges=ranges_strategy)
def test_scoring_is_deterministic(companies, weights, ranges) -> None:
    first = score_companies(companies, weights, ranges, HYPOTHESIS_CATALOG, "premium")
    second = score_companies(companies, weights, ranges, HYPOTHESIS_CATALOG, "premium")

    assert [item.to_dict() for item in first] == [item.to_dict() for item in second]


@given(
    value=st.floats(min_value=0, max_value=100),
    weight=st.floats(max_value=0, allow_nan=False, allow_infinity=False),
)
def test_non_positive_weights_are_never_included(value, weight) -> None:
    results = score_companies(
        [make_company(revenue=value)],
        {"revenue": weight},
        {"revenue": MetricRange(0.0, 100.0)},
        HYPOTHESIS_CATALOG,
        "premium",
    )

    assert results[0].breakdown == {}
    assert results[0].score is None
