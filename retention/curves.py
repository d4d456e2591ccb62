"""
Entry points for turning anchors / a RetentionModel into daily curves,
plus the manual "fill in the standard checkpoints" interpolation.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Mapping, Optional

import numpy as np

from core.errors import InsufficientAnchorsError
from core.schema import RR_DAYS, RetentionModel
from core.utils import excel_round

from .base import MIN_RETENTION_PCT, CurveBuilder, usable_anchors
from .log_linear import LogLinearBuilder
from .smart_curvature import SmartCurvatureBuilder

logger = logging.getLogger(__name__)

_BUILDERS: Dict[str, CurveBuilder] = {
    "log_linear": LogLinearBuilder(),
    "smart_curvature": SmartCurvatureBuilder(),
}


def get_builder(mode: str, *, min_retention: float = MIN_RETENTION_PCT) -> CurveBuilder:
    if mode not in _BUILDERS:
        raise ValueError(f"Unknown interpolation mode: {mode!r}")
    if min_retention != MIN_RETENTION_PCT:
        if mode == "smart_curvature":
            return SmartCurvatureBuilder(min_retention=min_retention)
        return LogLinearBuilder(floor=min_retention)
    return _BUILDERS[mode]


def synthesize(
    anchors: Mapping[int, float],
    mode: str = "log_linear",
    *,
    min_retention: float = MIN_RETENTION_PCT,
) -> np.ndarray:
    """
    Dense daily retention curve (percent) for days 0..720 from sparse anchors.
    Always returns a full curve, even from zero or one anchor.
    """
    return get_builder(mode, min_retention=min_retention).build(anchors)


def curve_for(model: RetentionModel, month_index: Optional[int] = None) -> np.ndarray:
    """Curve applying to a cohort month: its override if present, else the default."""
    return synthesize(model.anchors_for(month_index), model.mode)


def interpolate_anchors(
    anchors: Mapping[int, float],
    *,
    min_retention: float = MIN_RETENTION_PCT,
) -> Dict[int, float]:
    """
    Fill every standard checkpoint (RR_DAYS) between and after the known anchors
    using the log-log rule, rounded to 2 decimals. Checkpoints before the first
    anchor are left untouched.

    Raises InsufficientAnchorsError with fewer than two usable anchors.
    """
    points = [(d, v) for d, v in usable_anchors(anchors) if d in RR_DAYS]
    if len(points) < 2:
        raise InsufficientAnchorsError(
            "Need at least two anchor points (e.g. day 1 and day 30) to interpolate."
        )

    out = {int(d): float(v) for d, v in anchors.items()}

    for (d1, v1), (d2, v2) in zip(points[:-1], points[1:]):
        slope = math.log(v2 / v1) / math.log(d2 / d1)
        for d in RR_DAYS:
            if d1 < d < d2:
                out[d] = float(excel_round(max(v1 * (d / d1) ** slope, min_retention), 2))

    (prev_day, prev_val), (last_day, last_val) = points[-2], points[-1]
    tail_slope = math.log(last_val / prev_val) / math.log(last_day / prev_day)
    for d in RR_DAYS:
        if d > last_day:
            val = min(last_val * (d / last_day) ** tail_slope, last_val)
            out[d] = float(excel_round(max(val, min_retention), 2))

    logger.debug("Interpolated %d anchors into %d checkpoints", len(points), len(out))
    return out
