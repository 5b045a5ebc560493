from __future__ import annotations

from typing import Any, Dict, List

from mining_screener.core.metrics import Company
from mining_screener.core.transformers import convert_rows

# Rows shaped like the companies RPC output. Figures are illustrative.
SAMPLE_ROWS: List[Dict[str, Any]] = [
    {
        "company_id": 1,
        "company_name": "Aurora Ridge Gold",
        "tsx_code": "ARG",
        "status": "producer",
        "f_market_cap_value": 4.8e9,
        "f_enterprise_value_value": 5.1e9,
        "f_cash_value": 3.2e8,
        "f_debt_value": 6.1e8,
        "f_net_financial_assets": -2.9e8,
        "f_free_cash_flow": 2.4e8,
        "f_revenue_value": 1.35e9,
        "f_ebitda": 6.2e8,
        "f_net_income_value": 2.1e8,
        "vm_ev_per_resource_oz_all": 212.0,
        "vm_ev_per_reserve_oz_all": 510.0,
        "vm_mkt_cap_per_resource_oz_all": 200.0,
        "vm_mkt_cap_per_reserve_oz_all": 480.0,
        "me_reserves_total_aueq_moz": 10.0,
        "me_measured_indicated_total_aueq_moz": 17.5,
        "me_resources_total_aueq_moz": 24.0,
        "p_current_production_total_aueq_koz": 610.0,
        "p_future_production_total_aueq_koz": 720.0,
        "c_aisc_future": 1180.0,
        "c_construction_costs": None,
    },
    {
        "company_id": 2,
        "company_name": "Black Spruce Mining",
        "tsx_code": "BSM",
        "status": "producer",
        "f_market_cap_value": 1.2e9,
        "f_enterprise_value_value": 1.45e9,
        "f_cash_value": 9.5e7,
        "f_debt_value": 3.4e8,
        "f_net_financial_assets": -2.45e8,
        "f_free_cash_flow": 4.1e7,
        "f_revenue_value": 5.6e8,
        "f_ebitda": 1.9e8,
        "f_net_income_value": 3.8e7,
        "vm_ev_per_resource_oz_all": 118.0,
        "vm_ev_per_reserve_oz_all": 402.0,
        "vm_mkt_cap_per_resource_oz_all": 98.0,
        "vm_mkt_cap_per_reserve_oz_all": 333.0,
        "me_reserves_total_aueq_moz": 3.6,
        "me_measured_indicated_total_aueq_moz": 8.9,
        "me_resources_total_aueq_moz": 12.3,
        "p_current_production_total_aueq_koz": 265.0,
        "p_future_production_total_aueq_koz": 300.0,
        "c_aisc_future": 1390.0,
        "c_construction_costs": None,
    },
    {
        "company_id": 3,
        "company_name": "Cobalt Creek Resources",
        "tsx_code": "CCR",
        "status": "developer",
        "f_market_cap_value": 3.1e8,
        "f_enterprise_value_value": 2.6e8,
        "f_cash_value": 6.0e7,
        "f_debt_value": 1.0e7,
        "f_net_financial_assets": 5.0e7,
        "f_free_cash_flow": -3.5e7,
        "f_revenue_value": None,
        "f_ebitda": -1.2e7,
        "f_net_income_value": -1.6e7,
        "vm_ev_per_resource_oz_all": 43.0,
        "vm_ev_per_reserve_oz_all": 112.0,
        "vm_mkt_cap_per_resource_oz_all": 51.0,
        "vm_mkt_cap_per_reserve_oz_all": 134.0,
        "me_reserves_total_aueq_moz": 2.3,
        "me_measured_indicated_total_aueq_moz": 4.4,
        "me_resources_total_aueq_moz": 6.1,
        "p_current_production_total_aueq_koz": None,
        "p_future_production_total_aueq_koz": 185.0,
        "c_aisc_future": 1045.0,
        "c_construction_costs": 6.4e8,
    },
    {
        "company_id": 4,
        "company_name": "Dunmore Silver",
        "tsx_code": "DSV",
        "status": "developer",
        "f_market_cap_value": 1.45e8,
        "f_enterprise_value_value": 1.32e8,
        "f_cash_value": 2.1e7,
        "f_debt_value": 8.0e6,
        "f_net_financial_assets": 1.3e7,
        "f_free_cash_flow": -1.8e7,
        "f_revenue_value": None,
        "f_ebitda": -6.5e6,
        "f_net_income_value": -9.1e6,
        "vm_ev_per_resource_oz_all": 29.0,
        "vm_ev_per_reserve_oz_all": None,
        "vm_mkt_cap_per_resource_oz_all": 32.0,
        "vm_mkt_cap_per_reserve_oz_all": None,
        "me_reserves_total_aueq_moz": None,
        "me_measured_indicated_total_aueq_moz": 2.7,
        "me_resources_total_aueq_moz": 4.5,
        "p_current_production_total_aueq_koz": None,
        "p_future_production_total_aueq_koz": 95.0,
        "c_aisc_future": 1210.0,
        "c_construction_costs": 3.1e8,
    },
    {
        "company_id": 5,
        "company_name": "Eagle Pass Exploration",
        "tsx_code": "EPX",
        "status": "explorer",
        "f_market_cap_value": 4.2e7,
        "f_enterprise_value_value": 3.5e7,
        "f_cash_value": 7.0e6,
        "f_debt_value": 0.0,
        "f_net_financial_assets": 7.0e6,
        "f_free_cash_flow": -5.5e6,
        "f_revenue_value": None,
        "f_ebitda": None,
        "f_net_income_value": -4.8e6,
        "vm_ev_per_resource_oz_all": 21.0,
        "vm_ev_per_reserve_oz_all": None,
        "vm_mkt_cap_per_resource_oz_all": 25.0,
        "vm_mkt_cap_per_reserve_oz_all": None,
        "me_reserves_total_aueq_moz": None,
        "me_measured_indicated_total_aueq_moz": 0.9,
        "me_resources_total_aueq_moz": 1.7,
        "p_current_production_total_aueq_koz": None,
        "p_future_production_total_aueq_koz": None,
        "c_aisc_future": None,
        "c_construction_costs": None,
    },
    {
        "company_id": 6,
        "company_name": "Fenwick Lake Metals",
        "tsx_code": "FLM",
        "status": "explorer",
        "f_market_cap_value": 1.8e7,
        "f_enterprise_value_value": 1.9e7,
        "f_cash_value": 1.2e6,
        "f_debt_value": 2.2e6,
        "f_net_financial_assets": -1.0e6,
        "f_free_cash_flow": -2.7e6,
        "f_revenue_value": None,
        "f_ebitda": None,
        "f_net_income_value": -3.0e6,
        "vm_ev_per_resource_oz_all": 36.0,
        "vm_ev_per_reserve_oz_all": None,
        "vm_mkt_cap_per_resource_oz_all": 34.0,
        "vm_mkt_cap_per_reserve_oz_all": None,
        "me_reserves_total_aueq_moz": None,
        "me_measured_indicated_total_aueq_moz": None,
        "me_resources_total_aueq_moz": 0.53,
        "p_current_production_total_aueq_koz": None,
        "p_future_production_total_aueq_koz": None,
        "c_aisc_future": None,
        "c_construction_costs": None,
    },
    {
        "company_id": 7,
        "company_name": "Granite Crown Royalties",
        "tsx_code": "GCR",
        "status": "royalty",
        "f_market_cap_value": 2.2e9,
        "f_enterprise_value_value": 2.05e9,
        "f_cash_value": 1.7e8,
        "f_debt_value": 2.0e7,
        "f_net_financial_assets": 1.5e8,
        "f_free_cash_flow": 9.8e7,
        "f_revenue_value": 1.6e8,
        "f_ebitda": 1.35e8,
        "f_net_income_value": 7.4e7,
        "vm_ev_per_resource_oz_all": None,
        "vm_ev_per_reserve_oz_all": None,
        "vm_mkt_cap_per_resource_oz_all": None,
        "vm_mkt_cap_per_reserve_oz_all": None,
        "me_reserves_total_aueq_moz": None,
        "me_measured_indicated_total_aueq_moz": None,
        "me_resources_total_aueq_moz": None,
        "p_current_production_total_aueq_koz": 58.0,
        "p_future_production_total_aueq_koz": 80.0,
        "c_aisc_future": None,
        "c_construction_costs": None,
    },
    {
        "company_id": 8,
        "company_name": "Harbour Point Gold",
        "tsx_code": "HPG",
        "status": "producer",
        "f_market_cap_value": 6.3e8,
        "f_enterprise_value_value": 7.9e8,
        "f_cash_value": 4.4e7,
        "f_debt_value": 2.0e8,
        "f_net_financial_assets": -1.56e8,
        "f_free_cash_flow": 1.2e7,
        "f_revenue_value": 3.1e8,
        "f_ebitda": 9.0e7,
        "f_net_income_value": 1.1e7,
        "vm_ev_per_resource_oz_all": 97.0,
        "vm_ev_per_reserve_oz_all": 265.0,
        "vm_mkt_cap_per_resource_oz_all": 77.0,
        "vm_mkt_cap_per_reserve_oz_all": 211.0,
        "me_reserves_total_aueq_moz": 2.98,
        "me_measured_indicated_total_aueq_moz": 5.6,
        "me_resources_total_aueq_moz": 8.15,
        "p_current_production_total_aueq_koz": 150.0,
        "p_future_production_total_aueq_koz": 175.0,
        "c_aisc_future": 1560.0,
        "c_construction_costs": None,
    },
]


def load_sample_companies() -> List[Company]:
    return convert_rows(SAMPLE_ROWS)
