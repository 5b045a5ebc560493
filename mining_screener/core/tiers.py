"""Subscription tier ordering and metric access checks.

Tiers are ranked through an explicit table. Anything not in the table is
denied access, on either the viewer or the metric side.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from mining_screener.observability.logging import get_logger

from .metrics import MetricDefinition

logger = get_logger(__name__)

FREE = "free"
MEDIUM = "medium"
PREMIUM = "premium"

TIER_RANKS: Dict[str, int] = {FREE: 0, MEDIUM: 1, PREMIUM: 2}
TIERS = tuple(TIER_RANKS)


def tier_rank(tier: object) -> Optional[int]:
    """Return the rank of ``tier`` or ``None`` when it is not a known tier."""

    rank = TIER_RANKS.get(tier) if isinstance(tier, str) else None
    if rank is None:
        logger.warning("Unrecognized access tier %r; access will be denied", tier)
    return rank


def is_access_granted(viewer_tier: object, required_tier: object) -> bool:
    viewer_rank = tier_rank(viewer_tier)
    required_rank = tier_rank(required_tier)
    if viewer_rank is None or required_rank is None:
        return False
    return viewer_rank >= required_rank


def accessible_metrics(metrics: Iterable[MetricDefinition], viewer_tier: str) -> List[MetricDefinition]:
    return [metric for metric in metrics if is_access_granted(viewer_tier, metric.access_tier)]
