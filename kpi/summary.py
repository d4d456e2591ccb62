"""
Dashboard summary — ROI / ROAS, payback month, peak revenue, LTV.

Only operating months count toward ROI, ROAS and payback; the final accumulated
profit is taken from the last operating row (it already includes pre-launch costs).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Sequence

import pandas as pd

from core.config import GlobalSettings
from core.schema import RetentionModel
from engine.pnl import PLRow

from .metrics import average_arpdau, average_channel_fee_ratio, ltv, net_ltv


def _operating(rows: Sequence[PLRow]):
    return [r for r in rows if not r.month.is_development]


def full_cost(row: PLRow) -> float:
    return row.marketing_cost + row.channel_fee + row.ip_cost + row.cp_cost + row.ope_cost + row.fc


def roi(rows: Sequence[PLRow], months: int = 12) -> float:
    """Profit over full cost for the first `months` operating months, in percent."""
    window = _operating(rows)[:max(months, 0)]
    cost = sum(full_cost(r) for r in window)
    profit = sum(r.profit for r in window)
    return profit / cost * 100.0 if cost > 0 else 0.0


def roas(rows: Sequence[PLRow], months: int = 12) -> float:
    """Gross revenue over marketing spend for the first `months` operating months, in percent."""
    window = _operating(rows)[:max(months, 0)]
    spend = sum(r.marketing_cost for r in window)
    revenue = sum(r.gross_revenue for r in window)
    return revenue / spend * 100.0 if spend > 0 else 0.0


def payback_month(rows: Sequence[PLRow]) -> Optional[str]:
    """Label of the first operating month whose accumulated profit turns positive."""
    for r in _operating(rows):
        if r.acc_profit > 0:
            return r.month.label
    return None


@dataclass
class PlanSummary:
    ltv_days: int
    ltv_mode: str
    ltv: float
    roi_months: int
    roi_mode: str
    roi: float
    payback_month: Optional[str]
    peak_revenue: float
    final_acc_profit: float

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to a display-friendly table."""
        label = "LTV" if self.ltv_mode == "gross" else "Net LTV"
        ratio = "ROI" if self.roi_mode == "full" else "ROAS"
        return pd.DataFrame([
            {"Metric": f"{label} ({self.ltv_days}d)", "Value": f"{self.ltv:.2f}"},
            {"Metric": f"{ratio} ({self.roi_months}m)", "Value": f"{self.roi:.2f}%"},
            {"Metric": "Payback", "Value": self.payback_month or "-"},
            {"Metric": "Peak Monthly Revenue", "Value": f"{self.peak_revenue:,.0f}"},
            {"Metric": "Accumulated Profit", "Value": f"{self.final_acc_profit:,.0f}"},
        ])


def summarize_plan(
    rows: Sequence[PLRow],
    model: RetentionModel,
    settings: GlobalSettings,
    *,
    ltv_days: int = 90,
    ltv_mode: Literal["gross", "net"] = "gross",
    roi_months: int = 12,
    roi_mode: Literal["full", "marketing"] = "full",
) -> PlanSummary:
    ops = _operating(rows)
    arpdau = average_arpdau([r.month for r in rows])
    if ltv_mode == "gross":
        value = ltv(model, arpdau, ltv_days)
    else:
        value = net_ltv(model, arpdau, average_channel_fee_ratio(settings), ltv_days)

    return PlanSummary(
        ltv_days=ltv_days,
        ltv_mode=ltv_mode,
        ltv=value,
        roi_months=roi_months,
        roi_mode=roi_mode,
        roi=roi(rows, roi_months) if roi_mode == "full" else roas(rows, roi_months),
        payback_month=payback_month(rows),
        peak_revenue=max([r.gross_revenue for r in ops] + [0.0]),
        final_acc_profit=ops[-1].acc_profit if ops else 0.0,
    )
