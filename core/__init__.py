"""
Core package — schema definitions, configuration, and shared utilities.
No business logic lives here.
"""

from .schema import (
    RR_DAYS,
    REMOVABLE_ITEMS,
    MonthRecord,
    CustomCostItem,
    RetentionModel,
    uniform_weights,
)
from .config import GlobalSettings, Platforms, PlatformSettings, TimelineConfig
from .errors import (
    PlanError,
    InvalidTimelineRangeError,
    DailyWeightsError,
    InsufficientAnchorsError,
    InvalidAnchorsError,
    SettingsError,
    SnapshotFormatError,
)
from .utils import excel_round, round_int, safe_div

__all__ = [
    "RR_DAYS",
    "REMOVABLE_ITEMS",
    "MonthRecord",
    "CustomCostItem",
    "RetentionModel",
    "GlobalSettings",
    "Platforms",
    "PlatformSettings",
    "TimelineConfig",
    "PlanError",
    "InvalidTimelineRangeError",
    "DailyWeightsError",
    "InsufficientAnchorsError",
    "InvalidAnchorsError",
    "SettingsError",
    "SnapshotFormatError",
    "excel_round",
    "round_int",
    "safe_div",
    "uniform_weights",
]
