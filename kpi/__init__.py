"""
Dashboard KPIs — LTV, ROI/ROAS, payback.
"""

from .metrics import ltv, net_ltv, retention_days, average_channel_fee_ratio, average_arpdau
from .summary import PlanSummary, full_cost, roi, roas, payback_month, summarize_plan

__all__ = [
    "ltv",
    "net_ltv",
    "retention_days",
    "average_channel_fee_ratio",
    "average_arpdau",
    "PlanSummary",
    "full_cost",
    "roi",
    "roas",
    "payback_month",
    "summarize_plan",
]
