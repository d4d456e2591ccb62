"""
Planning inputs — timeline construction, month edits, validation, import/export.
"""

from .timeline_builder import build_timeline, create_month, operating_months
from .reconciler import (
    reconcile,
    update_month,
    update_timeline_month,
    fill_down,
    apply_daily_weights,
)
from .validators import (
    ValidationResult,
    validate_timeline_range,
    validate_daily_weights,
    validate_settings,
    validate_removed_items,
    validate_cost_items,
    validate_timeline,
    validate_timeline_config,
    validate_anchors,
    validate_retention_model,
)
from .snapshot import (
    PlanSnapshot,
    default_snapshot,
    snapshot_to_dict,
    apply_snapshot,
    timeline_config_for,
    validate_snapshot,
)
from .loader import load_snapshot, save_snapshot, load_retention_preset

__all__ = [
    "build_timeline",
    "create_month",
    "operating_months",
    "reconcile",
    "update_month",
    "update_timeline_month",
    "fill_down",
    "apply_daily_weights",
    "ValidationResult",
    "validate_timeline_range",
    "validate_daily_weights",
    "validate_settings",
    "validate_removed_items",
    "validate_cost_items",
    "validate_timeline",
    "validate_timeline_config",
    "validate_anchors",
    "validate_retention_model",
    "PlanSnapshot",
    "default_snapshot",
    "snapshot_to_dict",
    "apply_snapshot",
    "timeline_config_for",
    "validate_snapshot",
    "load_snapshot",
    "save_snapshot",
    "load_retention_preset",
]
