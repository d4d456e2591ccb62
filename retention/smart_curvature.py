"""
SmartCurvatureBuilder — curvature-inheriting retention curve.

Between two anchors (day 0 / 100% acts as the left anchor before the first
known point) the value is a blend of linear and log interpolation. Curves with
higher anchor values lean toward the log blend:

    w = clamp(0.2, 0.8, (vL/100) * (vR/100) * 2)
    v = w * log_interp + (1 - w) * linear_interp

After the last anchor the average daily log-decay of the last (up to) three
anchors is applied with a damping factor exp(-distance / damping_days), so the
tail flattens out instead of collapsing to zero.

Every day is clamped to [min_retention, 100] and may not jump above 1.1x the
previous day (capped at 1.05x when it does).
"""

from __future__ import annotations

import bisect
import math
from dataclasses import dataclass
from typing import Mapping

import numpy as np

from core.schema import MAX_RETENTION_DAY

from .base import MIN_RETENTION_PCT, CurveBuilder, usable_anchors


@dataclass(frozen=True)
class SmartCurvatureBuilder(CurveBuilder):
    max_day: int = MAX_RETENTION_DAY
    min_retention: float = MIN_RETENTION_PCT

    # tail policy; heuristics, not derived
    max_decay_rate: float = 0.02
    tail_floor_factor: float = 0.1
    damping_days: float = 100.0
    tail_window: int = 3

    # blend weight bounds and monotonicity guard
    min_log_weight: float = 0.2
    max_log_weight: float = 0.8
    jump_limit: float = 1.1
    jump_cap: float = 1.05

    def build(self, anchors: Mapping[int, float]) -> np.ndarray:
        points = [(d, v) for d, v in usable_anchors(anchors) if d <= self.max_day]
        rr = np.zeros(self.max_day + 1, dtype=float)
        rr[0] = 100.0
        if not points:
            return rr

        days = [d for d, _ in points]
        known = dict(points)
        decay_rate = self._tail_decay_rate(points)
        last_day, last_val = points[-1]

        for day in range(1, self.max_day + 1):
            if day in known:
                value = known[day]
            elif day < last_day:
                pos = bisect.bisect_left(days, day)
                left_day, left_val = (0, 100.0) if pos == 0 else points[pos - 1]
                right_day, right_val = points[pos]
                value = self._blend(day, left_day, left_val, right_day, right_val)
            elif decay_rate is not None:
                distance = day - last_day
                damping = math.exp(-distance / self.damping_days)
                extrapolated = last_val * math.exp(-decay_rate * distance * damping)
                value = max(self.min_retention, last_val * self.tail_floor_factor, extrapolated)
            else:
                value = max(self.min_retention, rr[day - 1] * 0.99)

            value = max(self.min_retention, min(100.0, value))
            if day > 1 and value > rr[day - 1] * self.jump_limit:
                value = min(value, rr[day - 1] * self.jump_cap)
            rr[day] = value

        return rr

    def _blend(self, day: int, left_day: int, left_val: float, right_day: int, right_val: float) -> float:
        t = (day - left_day) / (right_day - left_day)
        linear = left_val + t * (right_val - left_val)

        v_l = max(left_val, 1e-10)
        v_r = max(right_val, 1e-10)
        log_interp = math.exp(math.log(v_l) + t * (math.log(v_r) - math.log(v_l)))

        weight = (v_l / 100.0) * (v_r / 100.0) * 2.0
        weight = min(self.max_log_weight, max(self.min_log_weight, weight))
        return weight * log_interp + (1.0 - weight) * linear

    def _tail_decay_rate(self, points):
        """Average daily log-decay over the last anchors, or None with fewer than two."""
        tail = points[-min(self.tail_window, len(points)):]
        if len(tail) < 2:
            return None

        rates = [
            math.log(v1 / v2) / (d2 - d1)
            for (d1, v1), (d2, v2) in zip(tail[:-1], tail[1:])
            if v1 > 0 and v2 > 0
        ]
        if not rates:
            return None
        return min(sum(rates) / len(rates), self.max_decay_rate)
