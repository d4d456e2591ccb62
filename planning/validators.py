"""
Edit-boundary validation for plan inputs.

Catches problems before they reach the engine:
- Timeline ranges that cannot be built, or a range that disagrees with the months
- Retention anchors outside [0, 100]
- Custom install-share vectors that don't add up to 100%
- Percent settings outside [0, 100]
- Removed-item ids and cost items the P&L doesn't know about

The engine itself never renormalizes or clamps; invalid input is rejected here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Sequence

from core.config import GlobalSettings, TimelineConfig
from core.schema import (
    COST_CATEGORIES,
    DAYS_PER_MONTH,
    REMOVABLE_ITEMS,
    SPECIAL_COST_TYPES,
    CustomCostItem,
    MonthRecord,
)

WEIGHT_SUM_TOLERANCE = 0.1


@dataclass
class ValidationResult:
    """Errors reject the edit; warnings are reported and the edit goes through."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def extend(self, other: "ValidationResult", prefix: str = "") -> "ValidationResult":
        self.errors.extend(prefix + e for e in other.errors)
        self.warnings.extend(prefix + w for w in other.warnings)
        return self

    def summary(self) -> str:
        """Plan check report, one line per problem."""
        if not self.errors and not self.warnings:
            return "All checks passed."
        lines = [f"{len(self.errors)} error(s), {len(self.warnings)} warning(s)"]
        lines += [f"  error:   {e}" for e in self.errors]
        lines += [f"  warning: {w}" for w in self.warnings]
        return "\n".join(lines)


def validate_anchors(anchors: Mapping[int, float]) -> ValidationResult:
    """Anchor days must be >= 0 and retention within [0, 100]; 0 means unset."""
    result = ValidationResult()
    for day, pct in anchors.items():
        if int(day) < 0:
            result.errors.append(f"Retention day must be >= 0 (got {day}).")
        if not 0.0 <= float(pct) <= 100.0:
            result.errors.append(f"Retention for day {day} must be within [0, 100] (got {pct}).")
    return result


def validate_timeline_config(config: TimelineConfig, timeline: Sequence[MonthRecord]) -> ValidationResult:
    """The stored range should span exactly the months present."""
    result = validate_timeline_range(config.dev_start, config.ops_end)
    if not timeline:
        return result
    first, last = timeline[0].month_index, timeline[-1].month_index
    if (-config.dev_start, config.ops_end) != (first, last):
        result.warnings.append(
            f"Timeline range devStart={config.dev_start}, opsEnd={config.ops_end} does not match "
            f"the months M{first}..M{last}; using the months."
        )
    return result


def validate_timeline_range(dev_start: int, ops_end: int) -> ValidationResult:
    result = ValidationResult()
    if dev_start < 0:
        result.errors.append(f"Development months must be >= 0 (got {dev_start}).")
    if ops_end < 1:
        result.errors.append(f"Operating months must be >= 1 (got {ops_end}).")
    return result


def validate_daily_weights(weights: Sequence[float]) -> ValidationResult:
    result = ValidationResult()
    if len(weights) != DAYS_PER_MONTH:
        result.errors.append(f"Expected {DAYS_PER_MONTH} daily weights, got {len(weights)}.")
        return result

    if any(w < 0 for w in weights):
        result.errors.append("Daily weights must be non-negative.")

    total = float(sum(weights))
    if abs(total - 100.0) >= WEIGHT_SUM_TOLERANCE:
        result.errors.append(f"Daily weights must sum to 100% (currently {total:.1f}%).")
    return result


def validate_settings(settings: GlobalSettings) -> ValidationResult:
    result = ValidationResult()
    percents = {
        "tax_rate": settings.tax_rate,
        "refund_rate": settings.refund_rate,
        "ip_royalty": settings.ip_royalty,
        "cp_royalty": settings.cp_royalty,
        "ope_royalty": settings.ope_royalty,
        "server_cost_ratio": settings.server_cost_ratio,
    }
    for name in ("ios", "android", "official"):
        platform = getattr(settings.platforms, name)
        percents[f"platforms.{name}.share"] = platform.share
        percents[f"platforms.{name}.fee"] = platform.fee

    for name, value in percents.items():
        if not 0.0 <= value <= 100.0:
            result.errors.append(f"{name} must be within [0, 100] (got {value}).")

    if settings.labor_unit_cost < 0:
        result.errors.append(f"labor_unit_cost must be >= 0 (got {settings.labor_unit_cost}).")

    if settings.refund_rate + settings.tax_rate > 100.0:
        result.warnings.append("Refund + tax exceed 100% of gross; net sales will be negative.")

    if settings.platforms.official.share > 0:
        result.warnings.append(
            "Official-store share is not modelled separately; revenue is split across iOS/Android only."
        )
    return result


def validate_removed_items(removed: Iterable[str]) -> ValidationResult:
    result = ValidationResult()
    unknown = sorted(set(removed) - set(REMOVABLE_ITEMS))
    if unknown:
        result.errors.append(f"Unknown removable items: {unknown}")
    return result


def validate_cost_items(items: Iterable[CustomCostItem]) -> ValidationResult:
    result = ValidationResult()
    seen = set()
    for item in items:
        if item.id in seen:
            result.errors.append(f"Duplicate cost item id {item.id!r}.")
        seen.add(item.id)
        if item.category not in COST_CATEGORIES:
            result.errors.append(f"Cost item {item.id!r} has unknown category {item.category!r}.")
        if item.special_type is not None and item.special_type not in SPECIAL_COST_TYPES:
            result.errors.append(f"Cost item {item.id!r} has unknown special type {item.special_type!r}.")
        if item.category == "special" and item.special_type is None:
            result.warnings.append(f"Special cost item {item.id!r} is not linked to a P&L slot.")
    return result


def validate_timeline(timeline: Sequence[MonthRecord]) -> ValidationResult:
    """Strictly increasing month_index, unique ids, custom weights that add up."""
    result = ValidationResult()
    if not timeline:
        result.errors.append("Timeline is empty.")
        return result

    ids = [m.id for m in timeline]
    if len(set(ids)) != len(ids):
        result.errors.append("Month ids must be unique.")

    indices = [m.month_index for m in timeline]
    if any(b <= a for a, b in zip(indices[:-1], indices[1:])):
        result.errors.append("Month indices must be strictly increasing.")

    for m in timeline:
        if m.is_development and m.month_index > 0:
            result.warnings.append(f"{m.label}: operating-range month flagged as development.")
        if m.strategy == "custom":
            sub = validate_daily_weights(m.daily_weights)
            result.errors.extend(f"{m.label}: {e}" for e in sub.errors)
    return result


def validate_retention_model(default: Mapping[int, float], overrides: Mapping[int, Mapping[int, float]]) -> ValidationResult:
    result = validate_anchors(default)
    for month_index, anchors in sorted(overrides.items()):
        result.extend(validate_anchors(anchors), prefix=f"M{month_index} override: ")
    return result
