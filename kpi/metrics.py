"""
Lifetime-value metrics derived from the retention model.

  LTV(days)    = Σ_{d < days} retention[d] / 100 × ARPDAU
  NetLTV(days) = LTV with ARPDAU scaled by (1 - channel fee ratio)
"""

from __future__ import annotations

from typing import Optional, Sequence

from core.config import GlobalSettings
from core.schema import MonthRecord, RetentionModel
from retention import curve_for


def retention_days(model: RetentionModel, days: int = 90, month_index: Optional[int] = None) -> float:
    """Expected active days per install over the first `days` days (day 0 included)."""
    curve = curve_for(model, month_index)
    return float(curve[:max(days, 0)].sum() / 100.0)


def ltv(
    model: RetentionModel,
    arpdau: float,
    days: int = 90,
    month_index: Optional[int] = None,
) -> float:
    return retention_days(model, days, month_index) * arpdau


def net_ltv(
    model: RetentionModel,
    arpdau: float,
    channel_fee_ratio: float,
    days: int = 90,
    month_index: Optional[int] = None,
) -> float:
    """LTV after channel fees; channel_fee_ratio is a fraction (0.33 = 33%)."""
    return retention_days(model, days, month_index) * arpdau * (1.0 - channel_fee_ratio)


def average_channel_fee_ratio(settings: GlobalSettings) -> float:
    """Share-weighted iOS/Android channel fee as a fraction (0.3 when no shares are set)."""
    p = settings.platforms
    total = p.ios.share + p.android.share
    if total <= 0:
        return 0.3
    return (p.ios.fee * p.ios.share + p.android.fee * p.android.share) / total / 100.0


def average_arpdau(timeline: Sequence[MonthRecord], default: float = 0.15) -> float:
    ops = [m.arpdau for m in timeline if not m.is_development]
    return sum(ops) / len(ops) if ops else default
