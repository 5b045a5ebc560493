from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from mining_screener.core.metrics import Company, MetricRange
from mining_screener.core.settings import AppSettings, FilterSettings
from mining_screener.core.transformers import convert_rows
from mining_screener.data.providers import (
    BaseProvider,
    DataProviderError,
    ProviderConfig,
    SupabaseProvider,
)
from mining_screener.observability.logging import get_logger

from .cache import JsonCache
from .sample_provider import SampleProvider

logger = get_logger(__name__)

RANGES_CACHE_KEY = "metric_ranges"


RANGES_QUERY = "ranges"
COMPANIES_QUERY = "companies"


@dataclass(slots=True)
class QueryHealth:
    """Latest outcome of one RPC query, as shown in the sidebar."""

    query: str
    rows: Optional[int] = None
    succeeded_at: Optional[float] = None
    error: Optional[str] = None
    failed_at: Optional[float] = None
    cache_age: Optional[float] = None

    @property
    def is_failing(self) -> bool:
        return self.error is not None

    def mark_success(self, rows: int) -> None:
        self.rows = rows
        self.succeeded_at = time.time()
        self.error = None
        self.failed_at = None

    def mark_failure(self, exc: Exception) -> None:
        self.error = str(exc)
        self.failed_at = time.time()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "rows": self.rows,
            "succeeded_at": self.succeeded_at,
            "error": self.error,
            "failed_at": self.failed_at,
            "cache_age": self.cache_age,
        }


@dataclass(slots=True)
class CompanyPage:
    companies: List[Company] = field(default_factory=list)
    total_count: int = 0


def parse_metric_ranges(payload: Mapping[str, Any]) -> Dict[str, MetricRange]:
    """Convert ``{key: [min, max]}`` into ranges, skipping malformed entries.

    Pairs with non-finite bounds are kept so the scoring engine can report
    them as invalid ranges.
    """

    ranges: Dict[str, MetricRange] = {}
    for key, pair in payload.items():
        try:
            ranges[key] = MetricRange.from_pair(pair)
        except (LookupError, TypeError, ValueError):
            logger.warning("Skipping malformed range for %s: %r", key, pair)
    return ranges


class DataIngestionManager:
    """Coordinate fetching of company pages and cached global ranges."""

    def __init__(
        self,
        provider: BaseProvider,
        *,
        range_cache: Optional[JsonCache] = None,
        page_size: int = 500,
    ) -> None:
        self.provider = provider
        self.range_cache = range_cache or JsonCache("ranges")
        self.ranges_health = QueryHealth(RANGES_QUERY)
        self.companies_health = QueryHealth(COMPANIES_QUERY)
        self.page_size = page_size

    def get_metric_ranges(self, *, force_refresh: bool = False) -> Dict[str, MetricRange]:
        cached = None if force_refresh else self.range_cache.load(RANGES_CACHE_KEY)
        if cached is not None:
            return parse_metric_ranges(cached)

        try:
            payload = self.provider.metric_ranges()
        except DataProviderError as exc:
            logger.warning("Fetching metric ranges failed: %s", exc)
            self.ranges_health.mark_failure(exc)
            raise
        self.ranges_health.mark_success(len(payload or {}))
        if payload:
            self.range_cache.save(RANGES_CACHE_KEY, dict(payload))
        return parse_metric_ranges(payload)

    def get_companies(
        self,
        filters: Optional[FilterSettings] = None,
        *,
        currency: str = "USD",
        page_num: int = 1,
        page_size: Optional[int] = None,
        sort_column: str = "company_name",
        sort_direction: str = "asc",
    ) -> CompanyPage:
        filters = filters or FilterSettings()
        try:
            rows = self.provider.companies_page(
                filters.to_rpc_filters(),
                page_num=page_num,
                page_size=page_size or self.page_size,
                sort_column=sort_column,
                sort_direction=sort_direction,
                target_currency=currency,
            )
        except DataProviderError as exc:
            logger.warning("Fetching companies failed: %s", exc)
            self.companies_health.mark_failure(exc)
            raise
        companies = convert_rows(rows)
        self.companies_health.mark_success(len(companies))
        total_count = len(companies)
        if rows:
            total_count = int(rows[0].get("total_rows") or total_count)
        return CompanyPage(companies=companies, total_count=total_count)

    def get_provider_health(self) -> List[QueryHealth]:
        self.ranges_health.cache_age = self.ranges_age()
        return [self.ranges_health, self.companies_health]

    def ranges_age(self) -> Optional[float]:
        """Seconds since the cached metric ranges were fetched, if any are stored."""

        cached = self.range_cache.entry(RANGES_CACHE_KEY)
        return None if cached is None else cached.age()


def build_default_manager(settings: Optional[AppSettings] = None) -> DataIngestionManager:
    settings = settings or AppSettings.from_env()
    provider: BaseProvider
    if settings.has_remote:
        provider = SupabaseProvider(
            ProviderConfig(base_url=settings.supabase_url, api_key=settings.supabase_key)
        )
    else:
        logger.info("No Supabase credentials configured; serving sample data")
        provider = SampleProvider()

    return DataIngestionManager(
        provider,
        range_cache=JsonCache(
            "ranges",
            ttl_seconds=settings.range_ttl_seconds,
            base_dir=settings.cache_dir,
        ),
        page_size=settings.page_size,
    )
