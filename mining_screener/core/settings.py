from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from mining_screener.observability.logging import get_logger

from .tiers import FREE, TIER_RANKS

logger = get_logger(__name__)

COMPANY_STATUSES = ("producer", "developer", "explorer", "royalty")
DEFAULT_STATUSES = ("producer", "developer", "explorer")


@dataclass(slots=True)
class AppSettings:
    """Runtime configuration resolved from the environment."""

    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    page_size: int = 500
    default_tier: str = FREE
    currency: str = "USD"
    range_ttl_seconds: int = 6 * 60 * 60
    cache_dir: Path = field(default_factory=lambda: Path.home() / ".mining_screener" / "cache")
    metrics_file: Optional[Path] = None

    @property
    def has_remote(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        env = os.environ if environ is None else environ
        defaults = cls()

        default_tier = _clean(env.get("MINING_SCREENER_DEFAULT_TIER")) or defaults.default_tier
        if default_tier not in TIER_RANKS:
            logger.warning("Ignoring unknown MINING_SCREENER_DEFAULT_TIER %r", default_tier)
            default_tier = defaults.default_tier

        cache_dir = _clean(env.get("MINING_SCREENER_CACHE_DIR"))
        metrics_file = _clean(env.get("MINING_SCREENER_METRICS_FILE"))
        return cls(
            supabase_url=_clean(env.get("SUPABASE_URL")),
            supabase_key=_clean(env.get("SUPABASE_ANON_KEY")),
            page_size=_int_setting(env, "MINING_SCREENER_PAGE_SIZE", defaults.page_size),
            default_tier=default_tier,
            currency=(_clean(env.get("MINING_SCREENER_CURRENCY")) or defaults.currency).upper(),
            range_ttl_seconds=_int_setting(env, "MINING_SCREENER_RANGE_TTL", defaults.range_ttl_seconds),
            cache_dir=Path(cache_dir).expanduser() if cache_dir else defaults.cache_dir,
            metrics_file=Path(metrics_file).expanduser() if metrics_file else None,
        )


@dataclass(slots=True)
class FilterSettings:
    """Filters shared by every page; they shape the companies query."""

    development_status: List[str] = field(default_factory=lambda: list(DEFAULT_STATUSES))
    metric_ranges: Dict[str, Tuple[Optional[float], Optional[float]]] = field(default_factory=dict)
    search_term: str = ""

    def with_metric_range(self, key: str, minimum: Optional[float], maximum: Optional[float]) -> "FilterSettings":
        ranges = {**self.metric_ranges, key: (minimum, maximum)}
        return FilterSettings(
            development_status=list(self.development_status),
            metric_ranges=ranges,
            search_term=self.search_term,
        )

    def to_rpc_filters(self) -> Dict[str, Any]:
        filters: Dict[str, Any] = {}
        if self.development_status:
            filters["status"] = list(self.development_status)
        term = (self.search_term or "").strip()
        if term:
            filters["searchTerm"] = term
        for key, (minimum, maximum) in self.metric_ranges.items():
            if _is_finite(minimum):
                filters[f"min_{key}"] = minimum
            if _is_finite(maximum):
                filters[f"max_{key}"] = maximum
        return filters


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _clean(env.get(name))
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r", name, raw)
        return default
    return value


def _is_finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
