"""
Cohort revenue engine — superimposes every monthly acquisition cohort to get
daily DAU and gross revenue per operating month.

For operating month M and each day 1..30 of M:
  DAU(day) = Σ_cohorts C<=M Σ_installDay  installs(C, installDay) * retention(age) / 100
  age      = (M - C) * 30 + (day - installDay), skipped when negative

Development months (including the launch month) carry no users and no revenue.
Full recomputation on every call; O(months² × 30 × 30).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

from core.schema import DAYS_PER_MONTH, TAIL_RETENTION_PCT, MonthRecord, RetentionModel
from core.utils import round_int
from retention import synthesize

logger = logging.getLogger(__name__)

_DAYS = np.arange(1, DAYS_PER_MONTH + 1)
# rows: day of the active month, cols: install day of the cohort month
_DAY_OFFSETS = _DAYS[:, np.newaxis] - _DAYS[np.newaxis, :]


@dataclass(frozen=True)
class DerivedMonthMetrics:
    """A month plus its projected average DAU and gross revenue."""
    month: MonthRecord
    dau: int
    gross_revenue: float


def cohort_daily_dau(cohort: MonthRecord, month_gap: int, curve: np.ndarray) -> np.ndarray:
    """
    Contribution of one acquisition cohort to each of the 30 days of a month
    `month_gap` months after the cohort month.
    """
    installs = cohort.new_users * np.asarray(cohort.install_weights(), dtype=float) / 100.0
    ages = month_gap * DAYS_PER_MONTH + _DAY_OFFSETS

    in_range = ages < len(curve)
    rates = np.where(in_range, curve[np.clip(ages, 0, len(curve) - 1)], TAIL_RETENTION_PCT) / 100.0
    rates = np.where(ages >= 0, rates, 0.0)

    return (rates * installs[np.newaxis, :]).sum(axis=1)


def build_cohort_curves(timeline: Sequence[MonthRecord], model: RetentionModel) -> Dict[int, np.ndarray]:
    """Synthesized override curves keyed by month_index (months without overrides are absent)."""
    return {
        m.month_index: synthesize(model.overrides[m.month_index], model.mode)
        for m in timeline
        if m.month_index in model.overrides
    }


def project_metrics(
    timeline: Sequence[MonthRecord],
    retention_model: RetentionModel,
) -> List[DerivedMonthMetrics]:
    """
    Project average DAU and gross revenue for every month of the timeline.

    Returns one DerivedMonthMetrics per input month, in the same order.
    """
    global_curve = synthesize(retention_model.default, retention_model.mode)
    overrides = build_cohort_curves(timeline, retention_model)

    ops_start = next((i for i, m in enumerate(timeline) if not m.is_development), len(timeline))

    out: List[DerivedMonthMetrics] = []
    for pos, month in enumerate(timeline):
        if month.is_development:
            out.append(DerivedMonthMetrics(month=month, dau=0, gross_revenue=0.0))
            continue

        day_dau = np.zeros(DAYS_PER_MONTH, dtype=float)
        for cohort in timeline[ops_start:pos + 1]:
            if cohort.is_development or cohort.new_users <= 0:
                continue
            curve = overrides.get(cohort.month_index, global_curve)
            gap = month.month_index - cohort.month_index
            day_dau += cohort_daily_dau(cohort, gap, curve)

        out.append(
            DerivedMonthMetrics(
                month=month,
                dau=round_int(day_dau.sum() / DAYS_PER_MONTH),
                gross_revenue=float((day_dau * month.arpdau).sum()),
            )
        )

    logger.debug(
        "Projected %d months (%d operating, %d override curves)",
        len(out), sum(not m.is_development for m in timeline), len(overrides),
    )
    return out
