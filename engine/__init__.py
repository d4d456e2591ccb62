"""
Projection engine — cohort DAU/revenue, P&L waterfall, and the edit session.
"""

from .cohort import DerivedMonthMetrics, project_metrics
from .pnl import PLRow, compute_pl, pl_to_dataframe, metrics_to_dataframe
from .runner import ProjectionResult, run_projection
from .session import PlanSession

__all__ = [
    "DerivedMonthMetrics",
    "project_metrics",
    "PLRow",
    "compute_pl",
    "pl_to_dataframe",
    "metrics_to_dataframe",
    "ProjectionResult",
    "run_projection",
    "PlanSession",
]
