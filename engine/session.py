"""
PlanSession — the single writer path into the engine.

Every entry point builds a new PlanSnapshot, re-runs the full projection, and
only then swaps both in. A rejected edit raises and leaves the session as it was.
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Any, Iterable, Mapping, Optional, Sequence

from core.config import GlobalSettings, TimelineConfig
from core.errors import InvalidAnchorsError, InvalidTimelineRangeError, PlanError, SettingsError
from core.schema import INTERPOLATION_MODES, CustomCostItem
from planning.loader import Source, load_retention_preset, read_json
from planning.reconciler import apply_daily_weights, fill_down, update_timeline_month
from planning.snapshot import PlanSnapshot, apply_snapshot, default_snapshot, snapshot_to_dict
from planning.timeline_builder import build_timeline
from planning.validators import (
    validate_anchors,
    validate_cost_items,
    validate_removed_items,
    validate_settings,
    validate_timeline_range,
)
from retention import interpolate_anchors

from .runner import ProjectionResult, run_projection

logger = logging.getLogger(__name__)


class PlanSession:
    """Holds the current snapshot and its projection; last writer wins."""

    def __init__(self, snapshot: Optional[PlanSnapshot] = None):
        snapshot = snapshot if snapshot is not None else default_snapshot()
        self._snapshot = snapshot
        self._result = run_projection(snapshot)

    @property
    def snapshot(self) -> PlanSnapshot:
        return self._snapshot

    @property
    def result(self) -> ProjectionResult:
        return self._result

    def _commit(self, snapshot: PlanSnapshot) -> ProjectionResult:
        result = run_projection(snapshot)
        self._snapshot, self._result = snapshot, result
        return result

    # ---- timeline / months ----

    def resize_timeline(self, dev_start: int, ops_end: int) -> ProjectionResult:
        check = validate_timeline_range(dev_start, ops_end)
        if not check.is_valid:
            logger.warning("Rejected timeline resize: %s", "; ".join(check.errors))
            raise InvalidTimelineRangeError("; ".join(check.errors))

        timeline = build_timeline(dev_start, ops_end, self._snapshot.timeline)
        return self._commit(
            replace(
                self._snapshot,
                timeline_config=TimelineConfig(dev_start=dev_start, ops_end=ops_end),
                timeline=tuple(timeline),
            )
        )

    def edit_month(self, month_id: str, field: str, value: Any) -> ProjectionResult:
        timeline = update_timeline_month(self._snapshot.timeline, month_id, field, value)
        return self._commit(replace(self._snapshot, timeline=tuple(timeline)))

    def fill_down(self, month_id: str, field: str, value: Any) -> ProjectionResult:
        timeline = fill_down(self._snapshot.timeline, month_id, field, value)
        return self._commit(replace(self._snapshot, timeline=tuple(timeline)))

    def set_daily_weights(self, month_id: str, weights: Sequence[float]) -> ProjectionResult:
        """Save a custom install distribution (validated to sum to 100 ± 0.1)."""
        if all(m.id != month_id for m in self._snapshot.timeline):
            raise PlanError(f"No month with id {month_id!r}")
        timeline = [
            apply_daily_weights(m, weights) if m.id == month_id else m
            for m in self._snapshot.timeline
        ]
        return self._commit(replace(self._snapshot, timeline=tuple(timeline)))

    # ---- retention ----

    def set_anchor(self, day: int, pct: float, month_index: Optional[int] = None) -> ProjectionResult:
        """Edit one anchor of the default curve, or of a month's override (created from the default)."""
        model = self._snapshot.retention_model
        anchors = dict(model.anchors_for(month_index))
        anchors[int(day)] = float(pct)
        return self.set_anchors(anchors, month_index)

    def set_anchors(self, anchors: Mapping[int, float], month_index: Optional[int] = None) -> ProjectionResult:
        """Replace the default curve or one month's override; values must lie in [0, 100]."""
        check = validate_anchors(anchors)
        if not check.is_valid:
            logger.warning("Rejected retention anchors: %s", "; ".join(check.errors))
            raise InvalidAnchorsError("; ".join(check.errors))
        model = self._snapshot.retention_model.with_anchors(anchors, month_index)
        return self._commit(replace(self._snapshot, retention_model=model))

    def interpolate_retention(self, month_index: Optional[int] = None) -> ProjectionResult:
        """Fill the standard checkpoints from the known anchors (needs at least two)."""
        anchors = interpolate_anchors(self._snapshot.retention_model.anchors_for(month_index))
        return self.set_anchors(anchors, month_index)

    def clear_retention(self, month_index: Optional[int] = None) -> ProjectionResult:
        model = self._snapshot.retention_model.clear(month_index)
        return self._commit(replace(self._snapshot, retention_model=model))

    def fill_down_retention(self, month_index: int) -> ProjectionResult:
        later = [m.month_index for m in self._snapshot.timeline if not m.is_development]
        model = self._snapshot.retention_model.fill_down(month_index, later)
        return self._commit(replace(self._snapshot, retention_model=model))

    def set_retention_mode(self, mode: str) -> ProjectionResult:
        if mode not in INTERPOLATION_MODES:
            raise PlanError(f"Unknown interpolation mode: {mode!r}")
        model = replace(self._snapshot.retention_model, mode=mode)
        return self._commit(replace(self._snapshot, retention_model=model))

    def apply_retention_preset(self, source: Source, month_index: Optional[int] = None) -> ProjectionResult:
        """Load a preset into the default curve or one month's override, not both."""
        return self.set_anchors(load_retention_preset(source), month_index)

    # ---- settings / costs ----

    def update_settings(self, settings: Optional[GlobalSettings] = None, **changes: Any) -> ProjectionResult:
        new = settings if settings is not None else self._snapshot.settings
        if changes:
            unknown = sorted(set(changes) - {f.name for f in fields(GlobalSettings)})
            if unknown:
                raise SettingsError(f"Unknown settings: {unknown}")
            new = replace(new, **changes)
        check = validate_settings(new)
        if not check.is_valid:
            raise SettingsError("; ".join(check.errors))
        for w in check.warnings:
            logger.warning("Settings: %s", w)
        return self._commit(replace(self._snapshot, settings=new))

    def set_custom_cost_items(self, items: Iterable[CustomCostItem]) -> ProjectionResult:
        items = tuple(items)
        check = validate_cost_items(items)
        if not check.is_valid:
            raise PlanError("; ".join(check.errors))
        return self._commit(replace(self._snapshot, custom_cost_items=items))

    def set_removed_items(self, removed: Iterable[str]) -> ProjectionResult:
        removed = tuple(dict.fromkeys(removed))
        check = validate_removed_items(removed)
        if not check.is_valid:
            raise PlanError("; ".join(check.errors))
        return self._commit(replace(self._snapshot, removed_items=removed))

    # ---- import / export ----

    def import_snapshot(self, source: Source) -> ProjectionResult:
        return self._commit(apply_snapshot(self._snapshot, read_json(source)))

    def export_snapshot(self) -> dict:
        return snapshot_to_dict(self._snapshot)
