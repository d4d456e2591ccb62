"""
Base classes for retention curve builders.
A builder turns a sparse {day: pct} anchor map into a dense daily curve.
"""

from __future__ import annotations

from typing import List, Mapping, Tuple

import numpy as np

from core.schema import MAX_RETENTION_DAY

MIN_RETENTION_PCT = 0.01


def usable_anchors(anchors: Mapping[int, float]) -> List[Tuple[int, float]]:
    """
    Sorted (day, pct) pairs with pct > 0 and day >= 1.
    Values <= 0 mean "unset" and day 0 is always 100, so both are dropped.
    """
    out = []
    for day, value in anchors.items():
        d = int(day)
        v = float(value or 0.0)
        if d >= 1 and v > 0:
            out.append((d, v))
    out.sort()
    return out


class CurveBuilder:
    """Interface for building a daily retention curve (percent, index = day)."""

    max_day: int = MAX_RETENTION_DAY

    def build(self, anchors: Mapping[int, float]) -> np.ndarray:
        raise NotImplementedError
