"""
LogLinearBuilder — power-law (log-log) interpolation between anchors.

  day 0 .. first anchor : straight line from (0, 100)
  between anchors       : v1 * (d / d1) ** slope, slope = ln(v2/v1) / ln(d2/d1)
  after last anchor     : same power law using the last two anchors, never above
                          the last anchor and never below 0.01
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping

import numpy as np

from core.schema import MAX_RETENTION_DAY

from .base import MIN_RETENTION_PCT, CurveBuilder, usable_anchors

DEFAULT_TAIL_SLOPE = -0.5
SINGLE_ANCHOR_DECAY = 0.99


@dataclass(frozen=True)
class LogLinearBuilder(CurveBuilder):
    max_day: int = MAX_RETENTION_DAY
    floor: float = MIN_RETENTION_PCT

    def build(self, anchors: Mapping[int, float]) -> np.ndarray:
        points = [(d, v) for d, v in usable_anchors(anchors) if d <= self.max_day]
        daily = np.zeros(self.max_day + 1, dtype=float)
        daily[0] = 100.0

        if not points:
            return daily

        first_day, first_val = points[0]
        for d in range(1, first_day):
            daily[d] = 100.0 - (100.0 - first_val) * (d / first_day)
        daily[first_day] = first_val

        if len(points) == 1:
            # one known point: hold just under it for the rest of the horizon
            daily[first_day + 1:] = max(first_val * SINGLE_ANCHOR_DECAY, self.floor)
            return daily

        for (d1, v1), (d2, v2) in zip(points[:-1], points[1:]):
            if v1 > 0 and v2 > 0:
                slope = math.log(v2 / v1) / math.log(d2 / d1)
                for d in range(d1 + 1, d2):
                    daily[d] = v1 * (d / d1) ** slope
            else:
                for d in range(d1 + 1, d2):
                    daily[d] = v1 + (v2 - v1) * ((d - d1) / (d2 - d1))
            daily[d2] = v2

        (prev_day, prev_val), (last_day, last_val) = points[-2], points[-1]
        tail_slope = DEFAULT_TAIL_SLOPE
        if last_val > 0 and prev_val > 0 and last_day > prev_day:
            tail_slope = math.log(last_val / prev_val) / math.log(last_day / prev_day)

        if last_day < self.max_day:
            days = np.arange(last_day + 1, self.max_day + 1, dtype=float)
            tail = last_val * np.power(days / last_day, tail_slope)
            daily[last_day + 1:] = np.maximum(np.minimum(tail, last_val), self.floor)

        return daily
