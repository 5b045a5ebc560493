from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import requests

RANGES_RPC = "get_metrics_ranges"
COMPANIES_RPC = "get_companies_paginated"


class DataProviderError(RuntimeError):
    """Raised when a data provider returns an error response."""


@dataclass(slots=True)
class ProviderConfig:
    base_url: str
    api_key: str
    session: Optional[requests.Session] = None
    timeout: float = 30

    def get_session(self) -> requests.Session:
        if self.session is None:
            self.session = requests.Session()
        return self.session


class BaseProvider(abc.ABC):
    """Shared contract for sources of company rows and global metric ranges."""

    def __init__(self, config: Optional[ProviderConfig] = None) -> None:
        self.config = config

    @abc.abstractmethod
    def metric_ranges(self) -> Dict[str, Any]:
        """Return ``{metric key: [min, max]}`` over the full company population."""

    @abc.abstractmethod
    def companies_page(
        self,
        filters: Dict[str, Any],
        *,
        page_num: int = 1,
        page_size: int = 500,
        sort_column: str = "company_name",
        sort_direction: str = "asc",
        target_currency: str = "USD",
    ) -> List[Dict[str, Any]]:
        """Return one page of company rows, each carrying ``total_rows``."""


class SupabaseProvider(BaseProvider):
    """Calls Postgres functions exposed through the PostgREST RPC endpoint."""

    def _rpc(self, function: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        if self.config is None:
            raise DataProviderError("RPC provider is missing configuration")
        url = f"{self.config.base_url.rstrip('/')}/rest/v1/rpc/{function}"
        headers = {
            "apikey": self.config.api_key,
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self.config.get_session().post(
                url, json=payload or {}, headers=headers, timeout=self.config.timeout
            )
        except requests.RequestException as exc:
            raise DataProviderError(f"{function} request failed: {exc}") from exc
        if response.status_code != 200:
            raise DataProviderError(f"{function} returned {response.status_code}: {response.text}")
        try:
            return response.json()
        except ValueError as exc:
            raise DataProviderError(f"{function} returned invalid JSON") from exc

    def metric_ranges(self) -> Dict[str, Any]:
        data = self._rpc(RANGES_RPC)
        if not isinstance(data, dict):
            return {}
        return data

    def companies_page(
        self,
        filters: Dict[str, Any],
        *,
        page_num: int = 1,
        page_size: int = 500,
        sort_column: str = "company_name",
        sort_direction: str = "asc",
        target_currency: str = "USD",
    ) -> List[Dict[str, Any]]:
        data = self._rpc(
            COMPANIES_RPC,
            {
                "page_num": page_num,
                "page_size": page_size,
                "sort_column": sort_column,
                "sort_direction": sort_direction,
                "target_currency": target_currency,
                "filters": filters,
            },
        )
        if data is None:
            return []
        if not isinstance(data, list):
            raise DataProviderError(f"{COMPANIES_RPC} returned {type(data).__name__}, expected a list")
        return data


def close_providers(providers: Iterable[BaseProvider]) -> None:
    for provider in providers:
        if provider.config is None:
            continue
        session = provider.config.session
        if session is not None:
            session.close()
