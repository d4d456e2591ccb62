from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Literal, Mapping, Optional, Tuple

from .errors import InvalidAnchorsError

# Canonical retention checkpoints shown to planners (day -> retention %).
# Presets and manual interpolation only ever touch these days.
RR_DAYS: Tuple[int, ...] = (
    1, 3, 7, 14, 30, 60, 90, 120, 150, 180, 210, 240, 270, 300, 330, 360,
    390, 420, 450, 480, 510, 540, 570, 600, 630, 660, 690, 720,
)

MAX_RETENTION_DAY = 720
DAYS_PER_MONTH = 30
TAIL_RETENTION_PCT = 0.01  # used for cohort ages past MAX_RETENTION_DAY

Strategy = Literal["uniform", "custom"]
CalcMode = Literal["Fix_Budget_NUU", "Fix_CPA_NUU", "Fix_Budget_CPA"]
InterpolationMode = Literal["log_linear", "smart_curvature"]
CostCategory = Literal["outsourcing", "biztrip", "other", "special", "user-defined"]
SpecialCostType = Literal["grossSalesOfficial", "netSalesOfficial", "opeRoyalty", "channelFeeOfficial"]

STRATEGIES: Tuple[str, ...] = ("uniform", "custom")
CALC_MODES: Tuple[str, ...] = ("Fix_Budget_NUU", "Fix_CPA_NUU", "Fix_Budget_CPA")
INTERPOLATION_MODES: Tuple[str, ...] = ("log_linear", "smart_curvature")
COST_CATEGORIES: Tuple[str, ...] = ("outsourcing", "biztrip", "other", "special", "user-defined")
SPECIAL_COST_TYPES: Tuple[str, ...] = (
    "grossSalesOfficial",
    "netSalesOfficial",
    "opeRoyalty",
    "channelFeeOfficial",
)

# P&L lines that a planner may strike from the statement.
REMOVABLE_ITEMS: Tuple[str, ...] = (
    "grossSalesIos",
    "grossSalesAndroid",
    "refund",
    "tax",
    "netSalesIos",
    "netSalesAndroid",
    "ipCost",
    "cpCost",
    "channelFeeIos",
    "channelFeeAndroid",
    "laborCost",
    "serverCost",
    "marketingCost",
)

# Field each calc mode derives from the other two.
DERIVED_FIELD_BY_MODE: Dict[str, str] = {
    "Fix_Budget_NUU": "effective_cpa",
    "Fix_CPA_NUU": "marketing_budget",
    "Fix_Budget_CPA": "new_users",
}


def uniform_weights() -> Tuple[float, ...]:
    """Equal install share (percent) for each of the 30 days."""
    return tuple([100.0 / DAYS_PER_MONTH] * DAYS_PER_MONTH)


@dataclass(frozen=True)
class MonthRecord:
    """
    One calendar month of the plan.

    month_index < 0 is pre-launch, 0 is the launch month, > 0 is operating.
    Records are immutable; edits go through planning.reconciler and return
    a new record.
    """

    id: str
    month_index: int
    label: str
    is_development: bool
    new_users: float = 0.0
    marketing_budget: float = 0.0
    effective_cpa: float = 4.0
    arpdau: float = 0.15
    strategy: Strategy = "uniform"
    daily_weights: Tuple[float, ...] = field(default_factory=uniform_weights)
    calc_mode: CalcMode = "Fix_Budget_NUU"
    headcount: float = 5.0
    outsource: float = 0.0
    server_override: float = 0.0
    custom_costs: Mapping[str, float] = field(default_factory=dict)

    def install_weights(self) -> Tuple[float, ...]:
        """Per-day install share (percent) actually used by the cohort engine."""
        if self.strategy == "uniform":
            return uniform_weights()
        return self.daily_weights


@dataclass(frozen=True)
class CustomCostItem:
    id: str
    name: str
    visible: bool = True
    category: CostCategory = "user-defined"
    special_type: Optional[SpecialCostType] = None


@dataclass(frozen=True)
class RetentionModel:
    """
    Sparse retention anchors {day: pct}. Day 0 is implicitly 100 and never stored.

    `overrides` maps a cohort month_index to its own anchor map; cohorts without
    an override use `default`.
    """

    default: Mapping[int, float] = field(default_factory=dict)
    overrides: Mapping[int, Mapping[int, float]] = field(default_factory=dict)
    mode: InterpolationMode = "log_linear"

    def anchors_for(self, month_index: Optional[int] = None) -> Mapping[int, float]:
        if month_index is not None and month_index in self.overrides:
            return self.overrides[month_index]
        return self.default

    def with_anchors(self, anchors: Mapping[int, float], month_index: Optional[int] = None) -> "RetentionModel":
        """Replace the default curve (month_index=None) or one month's override."""
        cleaned = {int(d): float(v) for d, v in anchors.items() if int(d) != 0}
        bad = {d: v for d, v in cleaned.items() if d < 0 or not 0.0 <= v <= 100.0}
        if bad:
            raise InvalidAnchorsError(f"Retention anchors must be within [0, 100] on days >= 0 (got {bad}).")
        if month_index is None:
            return replace(self, default=cleaned)
        overrides = dict(self.overrides)
        overrides[int(month_index)] = cleaned
        return replace(self, overrides=overrides)

    def clear(self, month_index: Optional[int] = None) -> "RetentionModel":
        """Zero the default curve, or drop a month's override entirely."""
        if month_index is None:
            return replace(self, default=empty_anchors())
        overrides = {k: v for k, v in self.overrides.items() if k != month_index}
        return replace(self, overrides=overrides)

    def fill_down(self, month_index: int, later_months) -> "RetentionModel":
        """Copy month_index's curve (override or default) onto every later month given."""
        source = dict(self.anchors_for(month_index))
        overrides = dict(self.overrides)
        for idx in later_months:
            if idx > month_index:
                overrides[int(idx)] = dict(source)
        return replace(self, overrides=overrides)


def empty_anchors() -> Dict[int, float]:
    return {d: 0.0 for d in RR_DAYS}
