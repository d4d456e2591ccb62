"""
Month Parameter Reconciler — keeps new users, budget and eCPA consistent.

Each operating month carries a calc_mode naming the two authoritative fields:

  Fix_Budget_NUU  budget, new users -> effective_cpa    = round2(budget / new_users)
  Fix_CPA_NUU     eCPA, new users   -> marketing_budget = round(new_users * eCPA)
  Fix_Budget_CPA  budget, eCPA      -> new_users        = round(budget / eCPA)

Only the mode's derived field is recomputed, and not when the edit targets that
field itself. Switching modes does not recompute anything until the next edit.
Development months are never reconciled.
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import List, Sequence

from core.errors import DailyWeightsError, PlanError
from core.schema import CALC_MODES, DERIVED_FIELD_BY_MODE, STRATEGIES, MonthRecord
from core.utils import excel_round, round_int, safe_div

from .validators import validate_daily_weights

logger = logging.getLogger(__name__)

CUSTOM_COST_PREFIX = "custom_"

_EDITABLE = {f.name for f in fields(MonthRecord)} - {"id", "month_index", "is_development"}


def reconcile(record: MonthRecord, edited_field: str) -> MonthRecord:
    """Recompute the calc mode's derived field after `edited_field` changed."""
    if record.is_development:
        return record

    derived = DERIVED_FIELD_BY_MODE.get(record.calc_mode)
    if derived is None or derived == edited_field:
        return record

    if derived == "effective_cpa":
        value = float(excel_round(safe_div(record.marketing_budget, record.new_users), 2))
    elif derived == "marketing_budget":
        value = float(round_int(record.new_users * record.effective_cpa))
    else:
        value = float(round_int(record.marketing_budget / record.effective_cpa)) \
            if record.effective_cpa > 0 else 0.0

    return replace(record, **{derived: value})


def update_month(record: MonthRecord, field: str, value) -> MonthRecord:
    """
    Apply one field edit and reconcile. Returns a new record.

    `custom_<item_id>` sets that custom cost item's amount for the month.
    """
    if field.startswith(CUSTOM_COST_PREFIX):
        item_id = field[len(CUSTOM_COST_PREFIX):]
        costs = dict(record.custom_costs)
        costs[item_id] = float(value)
        updated = replace(record, custom_costs=costs)
    elif field in _EDITABLE:
        updated = replace(record, **{field: _coerce(field, value)})
    else:
        raise PlanError(f"Unknown month field: {field!r}")

    if field == "calc_mode":
        # mode switches take effect on the next edit
        return updated
    return reconcile(updated, field)


def update_timeline_month(
    timeline: Sequence[MonthRecord],
    month_id: str,
    field: str,
    value,
) -> List[MonthRecord]:
    """Return a new sequence with one month edited."""
    if not any(m.id == month_id for m in timeline):
        raise PlanError(f"No month with id {month_id!r}")
    return [update_month(m, field, value) if m.id == month_id else m for m in timeline]


def fill_down(
    timeline: Sequence[MonthRecord],
    from_month_id: str,
    field: str,
    value,
) -> List[MonthRecord]:
    """Apply the same edit to the given operating month and every later operating month."""
    start = next((m for m in timeline if m.id == from_month_id), None)
    if start is None:
        raise PlanError(f"No month with id {from_month_id!r}")

    out = []
    n = 0
    for m in timeline:
        if not m.is_development and m.month_index >= start.month_index:
            out.append(update_month(m, field, value))
            n += 1
        else:
            out.append(m)
    logger.debug("Filled %s down across %d months from %s", field, n, start.label)
    return out


def apply_daily_weights(record: MonthRecord, weights: Sequence[float]) -> MonthRecord:
    """Validate a custom install-share vector and switch the month to it."""
    result = validate_daily_weights(weights)
    if not result.is_valid:
        raise DailyWeightsError("; ".join(result.errors))
    return replace(record, daily_weights=tuple(float(w) for w in weights), strategy="custom")


def _coerce(field: str, value):
    if field == "calc_mode":
        if value not in CALC_MODES:
            raise PlanError(f"Unknown calc mode: {value!r}")
        return value
    if field == "strategy":
        if value not in STRATEGIES:
            raise PlanError(f"Unknown acquisition strategy: {value!r}")
        return value
    if field == "daily_weights":
        result = validate_daily_weights(value)
        if not result.is_valid:
            raise DailyWeightsError("; ".join(result.errors))
        return tuple(float(w) for w in value)
    if field == "label":
        return str(value)
    if field == "custom_costs":
        return {str(k): float(v) for k, v in dict(value).items()}
    return float(value)
