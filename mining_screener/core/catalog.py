"""Declarative registry of scoreable metrics.

Metric keys match the column names used by the RPC layer, both for weights and
for the global range table. ``value_path`` locates the value inside the nested
company record built by :mod:`mining_screener.core.transformers`.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple

from mining_screener.observability.logging import get_logger

from .metrics import MetricDefinition
from .tiers import TIER_RANKS

logger = get_logger(__name__)

METRIC_CATEGORIES: Dict[str, str] = {
    "financials": "Financial Health",
    "operating": "Operating Metrics",
    "valuation": "Valuation Ratios",
    "resources": "Resources & Grade",
    "production": "Production",
    "costs": "Costs",
}

SCOREABLE_FORMATS = ("number", "currency", "percent", "moz", "koz", "ratio", "years")

_REQUIRED_FIELDS = ("key", "label", "access_tier", "higher_is_better", "value_path")

DEFAULT_METRICS: Tuple[Dict[str, Any], ...] = (
    {
        "key": "f_market_cap_value",
        "label": "Market Cap",
        "access_tier": "free",
        "higher_is_better": True,
        "value_path": "financials.market_cap_value",
        "format": "currency",
        "category": "financials",
        "description": "Total market value of outstanding shares",
    },
    {
        "key": "f_enterprise_value_value",
        "label": "Enterprise Value",
        "access_tier": "free",
        "higher_is_better": True,
        "value_path": "financials.enterprise_value_value",
        "format": "currency",
        "category": "financials",
        "description": "Market cap plus debt minus cash",
    },
    {
        "key": "f_cash_value",
        "label": "Cash",
        "access_tier": "free",
        "higher_is_better": True,
        "value_path": "financials.cash_value",
        "format": "currency",
        "category": "financials",
        "description": "Available cash and highly liquid assets",
    },
    {
        "key": "f_debt_value",
        "label": "Total Debt",
        "access_tier": "medium",
        "higher_is_better": False,
        "value_path": "financials.debt_value",
        "format": "currency",
        "category": "financials",
        "description": "Total debt obligations",
    },
    {
        "key": "f_net_financial_assets",
        "label": "Net Financial Assets",
        "access_tier": "free",
        "higher_is_better": True,
        "value_path": "financials.net_financial_assets",
        "format": "currency",
        "category": "financials",
        "description": "Financial assets minus liabilities",
    },
    {
        "key": "f_free_cash_flow",
        "label": "Free Cash Flow",
        "access_tier": "premium",
        "higher_is_better": True,
        "value_path": "financials.free_cash_flow",
        "format": "currency",
        "category": "financials",
        "description": "Operating cash flow minus capital expenditures",
    },
    {
        "key": "f_revenue_value",
        "label": "Revenue",
        "access_tier": "medium",
        "higher_is_better": True,
        "value_path": "financials.revenue_value",
        "format": "currency",
        "category": "operating",
        "description": "Total income from metal sales",
    },
    {
        "key": "f_ebitda",
        "label": "EBITDA",
        "access_tier": "premium",
        "higher_is_better": True,
        "value_path": "financials.ebitda",
        "format": "currency",
        "category": "operating",
        "description": "Earnings before interest, taxes, depreciation and amortization",
    },
    {
        "key": "f_net_income_value",
        "label": "Net Income",
        "access_tier": "medium",
        "higher_is_better": True,
        "value_path": "financials.net_income_value",
        "format": "currency",
        "category": "operating",
        "description": "Bottom-line profit after all expenses",
    },
    {
        "key": "vm_ev_per_resource_oz_all",
        "label": "EV / Resource oz",
        "access_tier": "premium",
        "higher_is_better": False,
        "value_path": "valuation_metrics.ev_per_resource_oz_all",
        "format": "ratio",
        "category": "valuation",
        "description": "Enterprise value per total resource ounce",
    },
    {
        "key": "vm_ev_per_reserve_oz_all",
        "label": "EV / Reserve oz",
        "access_tier": "premium",
        "higher_is_better": False,
        "value_path": "valuation_metrics.ev_per_reserve_oz_all",
        "format": "ratio",
        "category": "valuation",
        "description": "Enterprise value per reserve ounce",
    },
    {
        "key": "vm_mkt_cap_per_resource_oz_all",
        "label": "MC / Resource oz",
        "access_tier": "medium",
        "higher_is_better": False,
        "value_path": "valuation_metrics.mkt_cap_per_resource_oz_all",
        "format": "ratio",
        "category": "valuation",
        "description": "Market cap per total resource ounce",
    },
    {
        "key": "vm_mkt_cap_per_reserve_oz_all",
        "label": "MC / Reserve oz",
        "access_tier": "medium",
        "higher_is_better": False,
        "value_path": "valuation_metrics.mkt_cap_per_reserve_oz_all",
        "format": "ratio",
        "category": "valuation",
        "description": "Market cap per reserve ounce",
    },
    {
        "key": "me_reserves_total_aueq_moz",
        "label": "Total Reserves",
        "access_tier": "medium",
        "higher_is_better": True,
        "value_path": "mineral_estimates.reserves_total_aueq_moz",
        "format": "moz",
        "category": "resources",
        "description": "Proven and probable gold-equivalent ounces",
    },
    {
        "key": "me_measured_indicated_total_aueq_moz",
        "label": "Total M&I",
        "access_tier": "medium",
        "higher_is_better": True,
        "value_path": "mineral_estimates.measured_indicated_total_aueq_moz",
        "format": "moz",
        "category": "resources",
        "description": "Measured and indicated gold-equivalent ounces",
    },
    {
        "key": "me_resources_total_aueq_moz",
        "label": "Total Resources",
        "access_tier": "medium",
        "higher_is_better": True,
        "value_path": "mineral_estimates.resources_total_aueq_moz",
        "format": "moz",
        "category": "resources",
        "description": "Measured, indicated and inferred gold-equivalent ounces",
    },
    {
        "key": "p_current_production_total_aueq_koz",
        "label": "Current Production",
        "access_tier": "premium",
        "higher_is_better": True,
        "value_path": "production.current_production_total_aueq_koz",
        "format": "koz",
        "category": "production",
        "description": "Current annual gold-equivalent production",
    },
    {
        "key": "p_future_production_total_aueq_koz",
        "label": "Future Production",
        "access_tier": "premium",
        "higher_is_better": True,
        "value_path": "production.future_production_total_aueq_koz",
        "format": "koz",
        "category": "production",
        "description": "Estimated future annual gold-equivalent production",
    },
    {
        "key": "c_aisc_future",
        "label": "AISC (Future)",
        "access_tier": "premium",
        "higher_is_better": False,
        "value_path": "costs.aisc_future",
        "format": "currency",
        "category": "costs",
        "description": "Projected all-in sustaining cost per ounce",
    },
    {
        "key": "c_construction_costs",
        "label": "Construction Costs",
        "access_tier": "premium",
        "higher_is_better": False,
        "value_path": "costs.construction_costs",
        "format": "currency",
        "category": "costs",
        "description": "Estimated initial capital to build the project",
    },
)


class MetricCatalog(Mapping[str, MetricDefinition]):
    """Read-only lookup of metric definitions by key, in declaration order."""

    def __init__(self, definitions: Iterable[MetricDefinition]) -> None:
        self._definitions: Dict[str, MetricDefinition] = {}
        for definition in definitions:
            if definition.key in self._definitions:
                raise ValueError(f"Duplicate metric key {definition.key!r}")
            self._definitions[definition.key] = definition

    def __getitem__(self, key: str) -> MetricDefinition:
        return self._definitions[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def by_category(self, category: str) -> List[MetricDefinition]:
        return [item for item in self._definitions.values() if item.category == category]

    def scoreable(self, category: str | None = None) -> List[MetricDefinition]:
        items = self.by_category(category) if category else list(self._definitions.values())
        return [item for item in items if item.format in SCOREABLE_FORMATS]


def _definition_from_record(record: Mapping[str, Any]) -> MetricDefinition:
    missing = [name for name in _REQUIRED_FIELDS if name not in record]
    if missing:
        raise ValueError(
            f"Metric record {record.get('key', '?')!r} is missing fields: {', '.join(missing)}"
        )
    tier = record["access_tier"]
    if tier not in TIER_RANKS:
        logger.warning("Metric %s declares unknown tier %r; it will never be accessible", record["key"], tier)
    return MetricDefinition(
        key=str(record["key"]),
        label=str(record["label"]),
        access_tier=tier,
        higher_is_better=bool(record["higher_is_better"]),
        value_path=str(record["value_path"]),
        format=str(record.get("format", "number")),
        category=str(record.get("category", "financials")),
        description=str(record.get("description", "")),
    )


def load_catalog(records: Iterable[Mapping[str, Any]] = DEFAULT_METRICS) -> MetricCatalog:
    return MetricCatalog(_definition_from_record(record) for record in records)


def load_catalog_file(path: Path) -> MetricCatalog:
    """Build a catalog from a JSON array of metric records."""

    payload = json.loads(Path(path).read_text())
    if not isinstance(payload, list):
        raise ValueError(f"Metric catalog file {path} must contain a JSON array")
    return load_catalog(payload)
