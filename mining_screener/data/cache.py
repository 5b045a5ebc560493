from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from mining_screener.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CACHE_DIR = Path.home() / ".mining_screener" / "cache"


@dataclass(slots=True)
class CacheEntry:
    """A cached payload and when it was fetched."""

    fetched_at: float
    data: Any

    def age(self, now: Optional[float] = None) -> float:
        return (time.time() if now is None else now) - self.fetched_at


class JsonCache:
    """Keeps slow-moving query results (such as global metric ranges) on disk.

    Entries older than ``ttl_seconds`` are treated as missing; a TTL of zero
    keeps entries until they are invalidated.
    """

    def __init__(
        self,
        namespace: str,
        *,
        ttl_seconds: int = 6 * 60 * 60,
        base_dir: Optional[Path] = None,
    ) -> None:
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds
        self.directory = (base_dir or DEFAULT_CACHE_DIR) / namespace
        self.directory.mkdir(parents=True, exist_ok=True)

    def entry(self, key: str) -> Optional[CacheEntry]:
        """Return the stored entry for ``key`` regardless of its age."""

        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text())
            return CacheEntry(fetched_at=float(payload.get("_fetched_at", 0)), data=payload.get("data"))
        except (json.JSONDecodeError, OSError, AttributeError, TypeError, ValueError) as exc:
            logger.debug("Ignoring unreadable cache entry %s: %s", path, exc)
            return None

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        cached = self.entry(key)
        if cached is None or self.is_expired(cached):
            return None
        return cached.data

    def save(self, key: str, data: Dict[str, Any]) -> None:
        self._path_for(key).write_text(json.dumps({"_fetched_at": time.time(), "data": data}))

    def is_expired(self, cached: CacheEntry) -> bool:
        return bool(self.ttl_seconds) and cached.age() > self.ttl_seconds

    def invalidate(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{key.replace('/', '_').lower()}.json"
