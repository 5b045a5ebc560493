from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from mining_screener.core.transformers import SECTION_PREFIXES
from mining_screener.data.providers import BaseProvider, ProviderConfig

from .sample_data import SAMPLE_ROWS


class SampleProvider(BaseProvider):
    """Offline provider that answers the RPC contract from deterministic sample rows."""

    def __init__(self, rows: Optional[Sequence[Dict[str, Any]]] = None) -> None:
        super().__init__(ProviderConfig(base_url="https://sample", api_key="demo"))
        self._frame = pd.DataFrame(list(rows if rows is not None else SAMPLE_ROWS))

    def metric_ranges(self) -> Dict[str, Any]:
        ranges: Dict[str, Any] = {}
        for column in self._metric_columns():
            values = pd.to_numeric(self._frame[column], errors="coerce").to_numpy(dtype=float)
            values = values[np.isfinite(values)]
            if values.size == 0:
                continue
            ranges[column] = [float(np.min(values)), float(np.max(values))]
        return ranges

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
        frame = self._apply_filters(self._frame, filters or {})
        if sort_column in frame.columns:
            frame = frame.sort_values(
                sort_column,
                ascending=sort_direction.lower() != "desc",
                na_position="last",
                kind="mergesort",
            )
        total_rows = len(frame)
        start = max(page_num - 1, 0) * page_size
        page = frame.iloc[start : start + page_size]
        page = page.astype(object).where(page.notna(), None)
        records = page.to_dict(orient="records")
        for record in records:
            record["total_rows"] = total_rows
        return records

    def _metric_columns(self) -> List[str]:
        return [
            column
            for column in self._frame.columns
            if any(column.startswith(prefix) for prefix in SECTION_PREFIXES)
        ]

    @staticmethod
    def _apply_filters(frame: pd.DataFrame, filters: Dict[str, Any]) -> pd.DataFrame:
        mask = pd.Series(True, index=frame.index)

        statuses = filters.get("status")
        if statuses:
            mask &= frame["status"].str.lower().isin([str(status).lower() for status in statuses])

        term = str(filters.get("searchTerm") or "").strip()
        if term:
            name_match = frame["company_name"].str.contains(term, case=False, regex=False, na=False)
            ticker_match = frame["tsx_code"].str.contains(term, case=False, regex=False, na=False)
            mask &= name_match | ticker_match

        # Companies missing a bounded metric drop out, as a SQL comparison with NULL would.
        for name, bound in filters.items():
            if name.startswith("min_") and name[4:] in frame.columns:
                mask &= pd.to_numeric(frame[name[4:]], errors="coerce") >= bound
            elif name.startswith("max_") and name[4:] in frame.columns:
                mask &= pd.to_numeric(frame[name[4:]], errors="coerce") <= bound
        return frame[mask]
