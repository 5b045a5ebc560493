from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from mining_screener.core.catalog import METRIC_CATEGORIES, MetricCatalog, load_catalog, load_catalog_file
from mining_screener.core.metrics import Company, CompanyScore, MetricDefinition, MetricRange, is_valid_number
from mining_screener.core.scoring_engine import score_companies
from mining_screener.core.settings import COMPANY_STATUSES, DEFAULT_STATUSES, AppSettings, FilterSettings
from mining_screener.core.tiers import TIERS, accessible_metrics, is_access_granted
from mining_screener.data.ingestion import CompanyPage, DataIngestionManager, build_default_manager
from mining_screener.data.providers import DataProviderError

st.set_page_config(page_title="Mining Company Screener", layout="wide")

CURRENCIES = ("USD", "CAD", "AUD")
WEIGHT_KEY_PREFIX = "weight_"

settings = AppSettings.from_env()


@st.cache_resource(show_spinner=False)
def _get_manager() -> DataIngestionManager:
    return build_default_manager(settings)


@st.cache_resource(show_spinner=False)
def _get_catalog() -> MetricCatalog:
    if settings.metrics_file is not None:
        return load_catalog_file(settings.metrics_file)
    return load_catalog()


def format_metric_value(value: Optional[float], fmt: str) -> str:
    if value is None:
        return "?"
    if fmt == "currency":
        return _compact(value, prefix="$")
    if fmt == "percent":
        return f"{value:.1%}"
    if fmt == "moz":
        return f"{value:,.1f} Moz"
    if fmt == "koz":
        return f"{value:,.0f} koz"
    if fmt == "years":
        return f"{value:,.1f} yrs"
    if fmt == "ratio":
        return f"{value:,.2f}"
    return _compact(value)


def _compact(value: float, *, prefix: str = "") -> str:
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    for threshold, suffix in ((1e9, "B"), (1e6, "M"), (1e3, "K")):
        if magnitude >= threshold:
            return f"{sign}{prefix}{magnitude / threshold:.1f}{suffix}"
    return f"{sign}{prefix}{magnitude:,.0f}"


def _reset_weights() -> None:
    for key in list(st.session_state.keys()):
        if key.startswith(WEIGHT_KEY_PREFIX):
            st.session_state[key] = 0


def _reset_filters() -> None:
    st.session_state["status_filter"] = list(DEFAULT_STATUSES)
    st.session_state["search_term"] = ""
    st.session_state["filter_metric_min"] = None
    st.session_state["filter_metric_max"] = None


def _current_weights(catalog: MetricCatalog) -> Dict[str, float]:
    weights: Dict[str, float] = {}
    for key in catalog:
        value = st.session_state.get(f"{WEIGHT_KEY_PREFIX}{key}", 0)
        if value:
            weights[key] = float(value)
    return weights


def _render_weight_sliders(
    catalog: MetricCatalog, ranges: Dict[str, MetricRange], viewer_tier: str
) -> None:
    for category, category_label in METRIC_CATEGORIES.items():
        metrics = catalog.scoreable(category)
        if not metrics:
            continue
        st.markdown(f"#### {category_label}")
        for metric in metrics:
            metric_range = ranges.get(metric.key)
            if metric_range is not None and metric_range.is_valid:
                range_note = (
                    f"Range: {format_metric_value(metric_range.minimum, metric.format)}"
                    f" - {format_metric_value(metric_range.maximum, metric.format)}"
                )
            else:
                range_note = "(Range N/A)"

            if not is_access_granted(viewer_tier, metric.access_tier):
                st.caption(f"🔒 **{metric.label}** · Locked ({metric.access_tier}) · {range_note}")
                continue

            st.slider(
                metric.label,
                min_value=0,
                max_value=100,
                step=5,
                key=f"{WEIGHT_KEY_PREFIX}{metric.key}",
                disabled=metric_range is None,
                help=f"{metric.description}. {range_note}",
            )


def _render_ranked_scores(scores: List[CompanyScore]) -> None:
    st.subheader("Ranked Scores")
    if not scores:
        st.info("Assign weights to metrics to see ranked scores.")
        return

    ranking_df = pd.DataFrame(
        {
            "Rank": index + 1,
            "Company": score.company_name,
            "Score": "-" if score.score is None else str(score.score),
            "Metrics used": score.included_count,
        }
        for index, score in enumerate(scores)
    )
    st.dataframe(ranking_df, use_container_width=True, hide_index=True)

    for score in scores:
        label = "-" if score.score is None else score.score
        with st.expander(f"{score.company_name} · {label}"):
            breakdown_df = pd.DataFrame(
                {
                    "Metric": component.metric_label,
                    "Raw": component.raw_value,
                    "Normalized": component.normalized_value,
                    "Weight": component.weight,
                    "Contribution": component.weighted_score,
                    "Status": "Included" if component.is_included else component.detail,
                }
                for component in score.breakdown.values()
            )
            st.dataframe(
                breakdown_df,
                use_container_width=True,
                hide_index=True,
                column_config={
                    "Normalized": st.column_config.NumberColumn(format="%.3f"),
                    "Contribution": st.column_config.NumberColumn(format="%.2f"),
                },
            )


def _render_weight_distribution(weights: Dict[str, float], catalog: MetricCatalog) -> None:
    if not weights:
        return
    total = sum(weights.values())
    weight_df = pd.DataFrame(
        {
            "Metric": [catalog[key].label if key in catalog else key for key in weights],
            "Weight": [value / total for value in weights.values()],
        }
    )
    chart = (
        alt.Chart(weight_df)
        .mark_arc(innerRadius=60, stroke="white")
        .encode(
            theta=alt.Theta(field="Weight", type="quantitative"),
            color=alt.Color(field="Metric", type="nominal"),
            tooltip=["Metric", alt.Tooltip("Weight", format=".0%")],
        )
    )
    st.markdown("### Weight distribution")
    st.altair_chart(chart, use_container_width=True)


def _render_company_table(companies: List[Company], catalog: MetricCatalog, viewer_tier: str) -> None:
    if not companies:
        st.info("No companies match your filters.")
        return
    rows = []
    for company in companies:
        row: Dict[str, object] = {
            "Company": company.name,
            "Ticker": company.ticker or "",
            "Status": (company.status or "").title(),
        }
        for metric in catalog.values():
            if is_access_granted(viewer_tier, metric.access_tier):
                value = company.value_at(metric.value_path)
                row[metric.label] = format_metric_value(value, metric.format) if is_valid_number(value) else "-"
            else:
                row[metric.label] = "🔒"
        rows.append(row)
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


manager = _get_manager()
catalog = _get_catalog()

st.session_state.setdefault("viewer_tier", settings.default_tier)
st.session_state.setdefault("currency", settings.currency if settings.currency in CURRENCIES else "USD")
st.session_state.setdefault("status_filter", list(DEFAULT_STATUSES))
st.session_state.setdefault("search_term", "")

with st.sidebar:
    st.header("Subscription")
    viewer_tier: str = st.selectbox("Access tier", TIERS, key="viewer_tier")
    currency: str = st.selectbox("Currency", CURRENCIES, key="currency")

    st.header("Filters")
    statuses = st.multiselect("Development status", COMPANY_STATUSES, key="status_filter")
    search_term = st.text_input("Search name or ticker", key="search_term")
    filterable = accessible_metrics(catalog.values(), viewer_tier)
    filter_metric: Optional[MetricDefinition] = st.selectbox(
        "Metric filter",
        [None, *filterable],
        format_func=lambda item: "None" if item is None else item.label,
    )
    filters = FilterSettings(development_status=list(statuses), search_term=search_term)
    if filter_metric is not None:
        minimum = st.number_input("Minimum", value=None, key="filter_metric_min")
        maximum = st.number_input("Maximum", value=None, key="filter_metric_max")
        filters = filters.with_metric_range(filter_metric.key, minimum, maximum)
    st.button("Reset filters", on_click=_reset_filters, use_container_width=True)

    st.markdown("---")
    st.header("Data health")
    for health in manager.get_provider_health():
        if health.is_failing:
            health_msg = f"⚠️ {health.error}"
        elif health.succeeded_at:
            fetched = datetime.fromtimestamp(health.succeeded_at).strftime("%b %d %H:%M")
            health_msg = f"✅ {health.rows} rows at {fetched}"
        else:
            health_msg = "not fetched this session"
        if health.cache_age is not None:
            health_msg += f" · cached {int(health.cache_age // 60)} min ago"
        st.caption(f"**{health.query}**: {health_msg}")
    refresh_ranges = st.button("Refresh metric ranges", use_container_width=True)

ranges: Dict[str, MetricRange] = {}
try:
    ranges = manager.get_metric_ranges(force_refresh=refresh_ranges)
except DataProviderError as exc:
    st.error(f"Could not load metric range data: {exc}")

page = CompanyPage()
try:
    page = manager.get_companies(filters, currency=currency)
except DataProviderError as exc:
    st.error(f"Data fetch failed: {exc}")

st.title("Mining Company Screener")
if page.total_count > len(page.companies):
    st.caption(f"{page.total_count} companies match your filters (showing first {len(page.companies)})")
else:
    st.caption(f"{page.total_count} companies match your filters")

tab_scoring, tab_companies = st.tabs(["Company scoring", "Companies"])

with tab_scoring:
    st.write(
        "Set the relative importance (0% to 100%) of each metric. Metrics locked for your tier "
        "are not included, and only metrics with a weight above 0% count toward the score."
    )
    left, right = st.columns([2, 1])
    with left:
        st.button("Reset weights", on_click=_reset_weights)
        _render_weight_sliders(catalog, ranges, viewer_tier)
    weights = _current_weights(catalog)
    scores: List[CompanyScore] = []
    if weights and page.companies:
        scores = score_companies(page.companies, weights, ranges, catalog, viewer_tier)
    with right:
        _render_ranked_scores(scores)
        _render_weight_distribution(weights, catalog)

with tab_companies:
    _render_company_table(page.companies, catalog, viewer_tier)
