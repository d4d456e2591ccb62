"""
Projection runner — the stateless transform from a plan snapshot to its
projected metrics and income statement.

    snapshot -> project_metrics (cohort DAU / gross revenue)
             -> compute_pl      (waterfall + accumulated profit)

No caching or incremental updates: callers re-run after every edit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple

import pandas as pd

from planning.snapshot import PlanSnapshot

from .cohort import DerivedMonthMetrics, project_metrics
from .pnl import PLRow, compute_pl, metrics_to_dataframe, pl_to_dataframe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectionResult:
    metrics: Tuple[DerivedMonthMetrics, ...]
    pl_rows: Tuple[PLRow, ...]

    @property
    def operating_rows(self) -> List[PLRow]:
        return [r for r in self.pl_rows if not r.month.is_development]

    @property
    def total_profit(self) -> float:
        return float(sum(r.profit for r in self.pl_rows))

    @property
    def final_acc_profit(self) -> float:
        return self.pl_rows[-1].acc_profit if self.pl_rows else 0.0

    def metrics_frame(self) -> pd.DataFrame:
        return metrics_to_dataframe(self.metrics)

    def pl_frame(self) -> pd.DataFrame:
        return pl_to_dataframe(self.pl_rows)


def run_projection(snapshot: PlanSnapshot) -> ProjectionResult:
    """Project DAU/revenue and the P&L for every month of the snapshot's timeline."""
    metrics = project_metrics(snapshot.timeline, snapshot.retention_model)
    rows = compute_pl(
        metrics,
        snapshot.settings,
        snapshot.custom_cost_items,
        snapshot.removed_items,
    )
    result = ProjectionResult(metrics=tuple(metrics), pl_rows=tuple(rows))
    logger.debug(
        "Projection: %d months, total gross %.2f, final acc profit %.2f",
        len(rows), sum(m.gross_revenue for m in metrics), result.final_acc_profit,
    )
    return result
