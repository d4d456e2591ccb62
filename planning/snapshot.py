"""
PlanSnapshot — the immutable bundle of every engine input.

The engine is a pure function of a snapshot; every edit produces a new one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple

from core.config import GlobalSettings, TimelineConfig
from core.errors import SnapshotFormatError
from core.schema import CustomCostItem, MonthRecord, RetentionModel, empty_anchors

from .timeline_builder import build_timeline
from .transport import (
    cost_item_to_dict,
    month_to_dict,
    parse_snapshot,
    retention_to_dict,
    settings_to_dict,
)
from .validators import (
    ValidationResult,
    validate_cost_items,
    validate_removed_items,
    validate_retention_model,
    validate_settings,
    validate_timeline,
    validate_timeline_config,
)

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"


@dataclass(frozen=True)
class PlanSnapshot:
    timeline_config: TimelineConfig = field(default_factory=TimelineConfig)
    timeline: Tuple[MonthRecord, ...] = ()
    settings: GlobalSettings = field(default_factory=GlobalSettings)
    retention_model: RetentionModel = field(default_factory=lambda: RetentionModel(default=empty_anchors()))
    custom_cost_items: Tuple[CustomCostItem, ...] = ()
    removed_items: Tuple[str, ...] = ()


def default_snapshot(config: TimelineConfig = TimelineConfig()) -> PlanSnapshot:
    """Fresh plan: default settings, empty retention anchors, freshly built timeline."""
    return PlanSnapshot(
        timeline_config=config,
        timeline=tuple(build_timeline(config.dev_start, config.ops_end)),
    )


def snapshot_to_dict(snapshot: PlanSnapshot, *, exported_at: Optional[str] = None) -> Dict[str, Any]:
    """Export shape: {version, exportedAt, timelineConfig, timeline, settings, rrModel, ...}."""
    cfg = snapshot.timeline_config
    return {
        "version": SNAPSHOT_VERSION,
        "exportedAt": exported_at or datetime.now(timezone.utc).isoformat(),
        "timelineConfig": {"devStart": cfg.dev_start, "opsEnd": cfg.ops_end},
        "timeline": [month_to_dict(m) for m in snapshot.timeline],
        "settings": settings_to_dict(snapshot.settings),
        "rrModel": retention_to_dict(snapshot.retention_model),
        "customCostItems": [cost_item_to_dict(c) for c in snapshot.custom_cost_items],
        "removedItems": list(snapshot.removed_items),
    }


def validate_snapshot(snapshot: PlanSnapshot) -> ValidationResult:
    """Every edit-boundary check run over a whole plan."""
    result = validate_timeline_config(snapshot.timeline_config, snapshot.timeline)
    result.extend(validate_timeline(snapshot.timeline))
    result.extend(validate_settings(snapshot.settings))
    model = snapshot.retention_model
    result.extend(validate_retention_model(model.default, model.overrides))
    result.extend(validate_cost_items(snapshot.custom_cost_items))
    result.extend(validate_removed_items(snapshot.removed_items))
    return result


def timeline_config_for(timeline: Sequence[MonthRecord]) -> TimelineConfig:
    """The range spanned by a month sequence."""
    return TimelineConfig(
        dev_start=max(0, -timeline[0].month_index),
        ops_end=max(1, timeline[-1].month_index),
    )


def apply_snapshot(base: PlanSnapshot, data: Any) -> PlanSnapshot:
    """
    Import an exported document over `base`.

    Every field present in `data` replaces the corresponding field of `base`
    wholesale; absent fields are kept. An imported timeline carries its own
    range, so `timelineConfig` is derived from the months and a disagreeing
    config only logs a warning; a range without months resizes the current
    timeline. Nothing is applied unless the whole document converts and
    validates.
    """
    model = parse_snapshot(data)

    changes: Dict[str, Any] = {}
    if model.timeline_config is not None:
        changes["timeline_config"] = model.timeline_config.to_domain()
    if model.timeline is not None:
        timeline = tuple(m.to_domain() for m in model.timeline)
        _raise_if_invalid(validate_timeline(timeline))
        if "timeline_config" in changes:
            check = validate_timeline_config(changes["timeline_config"], timeline)
            for w in check.warnings:
                logger.warning("Snapshot: %s", w)
        changes["timeline_config"] = timeline_config_for(timeline)
        changes["timeline"] = timeline
    elif "timeline_config" in changes:
        # a bare range resizes the current months
        cfg = changes["timeline_config"]
        changes["timeline"] = tuple(build_timeline(cfg.dev_start, cfg.ops_end, base.timeline))
    if model.settings is not None:
        settings = model.settings.to_domain()
        check = validate_settings(settings)
        _raise_if_invalid(check)
        for w in check.warnings:
            logger.warning("Snapshot settings: %s", w)
        changes["settings"] = settings
    if model.retention_model is not None:
        changes["retention_model"] = model.retention_model.to_domain()
    if model.custom_cost_items is not None:
        items = tuple(c.to_domain() for c in model.custom_cost_items)
        _raise_if_invalid(validate_cost_items(items))
        changes["custom_cost_items"] = items
    if model.removed_items is not None:
        changes["removed_items"] = tuple(model.removed_items)

    logger.info("Importing snapshot version %s (fields: %s)", model.version, sorted(changes))
    return replace(base, **changes)


def _raise_if_invalid(result: ValidationResult) -> None:
    if not result.is_valid:
        raise SnapshotFormatError("Malformed plan snapshot: " + "; ".join(result.errors))
