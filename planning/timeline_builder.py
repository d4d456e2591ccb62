"""
Build / resize the ordered month sequence.

  development months  -dev_start .. -1   labels M-n
  launch month        0                  label  M0  (no revenue)
  operating months    1 .. ops_end       labels Mn

Existing records are reused by month_index so edits survive a resize.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from core.errors import InvalidTimelineRangeError
from core.schema import MonthRecord
from core.utils import new_record_id

logger = logging.getLogger(__name__)


def month_label(month_index: int) -> str:
    return f"M{month_index}"


def create_month(month_index: int, *, is_development: bool, taken_ids: Iterable[str] = ()) -> MonthRecord:
    """Fresh record with planning defaults."""
    return MonthRecord(
        id=new_record_id(taken_ids),
        month_index=month_index,
        label=month_label(month_index),
        is_development=is_development,
    )


def build_timeline(
    dev_start: int,
    ops_end: int,
    previous: Iterable[MonthRecord] = (),
) -> List[MonthRecord]:
    """
    Return the month sequence for the given range, reusing records from `previous`.

    Raises InvalidTimelineRangeError for dev_start < 0 or ops_end < 1. Callers
    should check with planning.validators.validate_timeline_range first.
    """
    if dev_start < 0 or ops_end < 1:
        raise InvalidTimelineRangeError(
            f"Invalid timeline range: dev_start={dev_start} (>= 0), ops_end={ops_end} (>= 1)."
        )

    existing: Dict[int, MonthRecord] = {}
    for rec in previous:
        existing.setdefault(rec.month_index, rec)

    rows: List[MonthRecord] = []
    taken = set()
    reserved = {r.id for r in existing.values()}
    reused = 0
    for idx in range(-dev_start, ops_end + 1):
        rec = existing.get(idx)
        if rec is not None and rec.id not in taken:
            reused += 1
        else:
            rec = create_month(idx, is_development=idx <= 0, taken_ids=taken | reserved)
        taken.add(rec.id)
        rows.append(rec)

    logger.info(
        "Built timeline dev_start=%d ops_end=%d (%d months, %d reused)",
        dev_start, ops_end, len(rows), reused,
    )
    return rows


def operating_months(timeline: Iterable[MonthRecord]) -> List[MonthRecord]:
    return [m for m in timeline if not m.is_development]
