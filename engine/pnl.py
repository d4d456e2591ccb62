"""
P&L waterfall — gross revenue down to accumulated profit, month by month.

  gross (iOS / Android split)
  - refund, tax                           -> net sales
  - IP / CP royalties, channel fees       -> CM1
  - marketing                             -> CM2
  - labor, server, custom fixed costs     -> profit
  running sum of profit                   -> acc_profit

A line listed in `removed_items` is zero everywhere it is referenced, so the
downstream subtotals stay consistent with what is displayed. The official-store
lines and OPE royalty are always 0 in the current platform model.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Iterable, List, Sequence

import pandas as pd

from core.config import GlobalSettings
from core.schema import CustomCostItem

from .cohort import DerivedMonthMetrics


@dataclass(frozen=True)
class PLRow:
    metrics: DerivedMonthMetrics

    gross_sales_ios: float
    gross_sales_android: float
    gross_sales_official: float
    refund: float
    tax: float

    net_sales_ios: float
    net_sales_android: float
    net_sales_official: float
    net_sales: float

    ip_cost: float
    cp_cost: float
    ope_cost: float

    channel_fee_ios: float
    channel_fee_android: float
    channel_fee_official: float
    channel_fee: float

    cm1: float
    cm1_ratio: float  # % of net sales
    marketing_cost: float
    cm2: float
    cm2_ratio: float  # % of net sales

    labor_cost: float
    server_cost: float
    outsource_cost: float  # visible "outsourcing" items, already inside custom_total
    custom_total: float
    fc: float

    profit: float
    acc_profit: float

    @property
    def month(self):
        return self.metrics.month

    @property
    def gross_revenue(self) -> float:
        return self.metrics.gross_revenue

    @property
    def dau(self) -> int:
        return self.metrics.dau


def _pct(rate: float) -> float:
    return rate / 100.0


def compute_pl(
    metrics: Sequence[DerivedMonthMetrics],
    settings: GlobalSettings,
    custom_cost_items: Iterable[CustomCostItem] = (),
    removed_items: Iterable[str] = (),
) -> List[PLRow]:
    """
    Build the full income statement in month order.

    acc_profit runs across the whole call, pre-launch months included.
    """
    removed = set(removed_items)
    visible_items = [c for c in custom_cost_items if c.visible]
    ios_share, android_share = settings.platforms.normalized_shares()

    refund_rate = 0.0 if "refund" in removed else _pct(settings.refund_rate)
    tax_rate = 0.0 if "tax" in removed else _pct(settings.tax_rate)
    net_multiplier = 1.0 - refund_rate - tax_rate

    rows: List[PLRow] = []
    acc_profit = 0.0
    for m in metrics:
        month = m.month
        gross = m.gross_revenue

        gross_ios = gross * ios_share
        gross_android = gross * android_share
        refund = gross * refund_rate
        tax = gross * tax_rate

        net_ios = gross_ios * net_multiplier
        net_android = gross_android * net_multiplier
        net_sales = net_ios + net_android

        ip_cost = 0.0 if "ipCost" in removed else net_sales * _pct(settings.ip_royalty)
        cp_cost = 0.0 if "cpCost" in removed else net_sales * _pct(settings.cp_royalty)

        fee_ios = 0.0 if "channelFeeIos" in removed else net_ios * _pct(settings.platforms.ios.fee)
        fee_android = 0.0 if "channelFeeAndroid" in removed else net_android * _pct(settings.platforms.android.fee)
        channel_fee = fee_ios + fee_android

        cm1 = net_sales - ip_cost - cp_cost - channel_fee
        marketing = 0.0 if "marketingCost" in removed else month.marketing_budget
        cm2 = cm1 - marketing

        labor = 0.0 if "laborCost" in removed else month.headcount * settings.labor_unit_cost
        if "serverCost" in removed:
            server = 0.0
        elif settings.use_server_ratio:
            server = gross * _pct(settings.server_cost_ratio)
        else:
            server = month.server_override

        custom_total = 0.0
        outsource = 0.0
        for item in visible_items:
            amount = float(month.custom_costs.get(item.id, 0.0) or 0.0)
            custom_total += amount
            if item.category == "outsourcing":
                outsource += amount

        fc = labor + server + custom_total
        profit = cm2 - fc
        acc_profit += profit

        rows.append(
            PLRow(
                metrics=m,
                gross_sales_ios=gross_ios,
                gross_sales_android=gross_android,
                gross_sales_official=0.0,
                refund=refund,
                tax=tax,
                net_sales_ios=net_ios,
                net_sales_android=net_android,
                net_sales_official=0.0,
                net_sales=net_sales,
                ip_cost=ip_cost,
                cp_cost=cp_cost,
                ope_cost=0.0,
                channel_fee_ios=fee_ios,
                channel_fee_android=fee_android,
                channel_fee_official=0.0,
                channel_fee=channel_fee,
                cm1=cm1,
                cm1_ratio=cm1 / net_sales * 100.0 if net_sales > 0 else 0.0,
                marketing_cost=marketing,
                cm2=cm2,
                cm2_ratio=cm2 / net_sales * 100.0 if net_sales > 0 else 0.0,
                labor_cost=labor,
                server_cost=server,
                outsource_cost=outsource,
                custom_total=custom_total,
                fc=fc,
                profit=profit,
                acc_profit=acc_profit,
            )
        )

    return rows


def metrics_to_dataframe(metrics: Sequence[DerivedMonthMetrics]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "month_index": m.month.month_index,
                "label": m.month.label,
                "is_development": m.month.is_development,
                "strategy": m.month.strategy,
                "calc_mode": m.month.calc_mode,
                "new_users": m.month.new_users,
                "marketing_budget": m.month.marketing_budget,
                "effective_cpa": m.month.effective_cpa,
                "dau": m.dau,
                "arpdau": m.month.arpdau,
                "gross_revenue": m.gross_revenue,
            }
            for m in metrics
        ]
    )


def pl_to_dataframe(rows: Sequence[PLRow]) -> pd.DataFrame:
    """One row per month: identity columns followed by every waterfall line."""
    records = []
    for r in rows:
        lines = {f.name: getattr(r, f.name) for f in fields(r) if f.name != "metrics"}
        records.append({
            "month_index": r.month.month_index,
            "label": r.month.label,
            "is_development": r.month.is_development,
            "new_users": r.month.new_users,
            "dau": r.dau,
            "arpdau": r.month.arpdau,
            "gross_revenue": r.gross_revenue,
            **lines,
        })
    return pd.DataFrame(records)
