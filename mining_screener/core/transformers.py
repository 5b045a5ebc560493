from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .metrics import Company

# Column prefixes used by the companies RPC, mapped to nested record sections.
SECTION_PREFIXES: Dict[str, str] = {
    "f_": "financials",
    "vm_": "valuation_metrics",
    "me_": "mineral_estimates",
    "p_": "production",
    "c_": "costs",
}

_IDENTITY_COLUMNS = {"company_id", "company_name", "tsx_code", "ticker", "status", "total_rows"}


class CompanyTransformer:
    """Translate flat RPC rows into nested :class:`Company` records."""

    def build(self, row: Mapping[str, Any]) -> Company:
        data: Dict[str, Any] = {}
        for column, value in row.items():
            if column in _IDENTITY_COLUMNS:
                continue
            if isinstance(value, Mapping):
                section = data.setdefault(column, {})
                section.update({key: self._coerce(item) for key, item in value.items()})
                continue
            section_name, field_name = self._split_column(column)
            if section_name is None:
                data[column] = value
            else:
                data.setdefault(section_name, {})[field_name] = self._coerce(value)

        ticker = row.get("ticker") or row.get("tsx_code")
        status = row.get("status")
        return Company(
            company_id=int(row["company_id"]),
            name=str(row.get("company_name") or ticker or row["company_id"]),
            ticker=str(ticker).upper() if ticker else None,
            status=str(status).lower() if status else None,
            data=data,
        )

    @staticmethod
    def _split_column(column: str) -> tuple[Optional[str], str]:
        for prefix, section in SECTION_PREFIXES.items():
            if column.startswith(prefix):
                return section, column[len(prefix):]
        return None, column

    @staticmethod
    def _coerce(value: Any) -> Any:
        # PostgREST may serialize numeric columns as strings.
        if not isinstance(value, str):
            return value
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None


def convert_rows(rows: Iterable[Mapping[str, Any]]) -> List[Company]:
    transformer = CompanyTransformer()
    return [transformer.build(row) for row in rows]
