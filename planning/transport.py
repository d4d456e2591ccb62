"""
Transport schema for exported plans and retention presets.

Field aliases follow the exported JSON (camelCase, `nuu`, `ecpa`, `rrModel`...);
Python names are accepted as well. Parsing is all-or-nothing: a document either
converts fully into domain objects or raises SnapshotFormatError.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.config import GlobalSettings, Platforms, PlatformSettings, TimelineConfig
from core.errors import SnapshotFormatError
from core.schema import (
    CALC_MODES,
    COST_CATEGORIES,
    DAYS_PER_MONTH,
    INTERPOLATION_MODES,
    REMOVABLE_ITEMS,
    SPECIAL_COST_TYPES,
    STRATEGIES,
    CustomCostItem,
    MonthRecord,
    RetentionModel,
    uniform_weights,
)

from .validators import validate_anchors

# legacy spellings found in older exports
_STRATEGY_ALIASES = {"avg": "uniform"}
_MODE_ALIASES = {"linear_log": "log_linear"}


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TimelineConfigModel(_Model):
    dev_start: int = Field(alias="devStart", ge=0)
    ops_end: int = Field(alias="opsEnd", ge=1)

    def to_domain(self) -> TimelineConfig:
        return TimelineConfig(dev_start=self.dev_start, ops_end=self.ops_end)


class MonthModel(_Model):
    id: str
    month_index: int = Field(alias="monthIndex")
    label: str = Field(alias="monthLabel")
    is_development: bool = Field(alias="isDev")
    new_users: float = Field(0.0, alias="nuu")
    marketing_budget: float = Field(0.0, alias="marketing")
    effective_cpa: float = Field(4.0, alias="ecpa")
    arpdau: float = 0.15
    strategy: str = "uniform"
    daily_weights: List[float] = Field(default_factory=lambda: list(uniform_weights()), alias="customDailyWeights")
    calc_mode: str = Field("Fix_Budget_NUU", alias="calcMode")
    headcount: float = 5.0
    outsource: float = 0.0
    server_override: float = Field(0.0, alias="serverOverride")
    custom_costs: Dict[str, float] = Field(default_factory=dict, alias="customCosts")

    @field_validator("strategy")
    @classmethod
    def _strategy(cls, v: str) -> str:
        v = _STRATEGY_ALIASES.get(v, v)
        if v not in STRATEGIES:
            raise ValueError(f"unknown strategy {v!r}")
        return v

    @field_validator("calc_mode")
    @classmethod
    def _calc_mode(cls, v: str) -> str:
        if v not in CALC_MODES:
            raise ValueError(f"unknown calc mode {v!r}")
        return v

    @field_validator("daily_weights")
    @classmethod
    def _weights(cls, v: List[float]) -> List[float]:
        if len(v) != DAYS_PER_MONTH:
            raise ValueError(f"expected {DAYS_PER_MONTH} daily weights, got {len(v)}")
        return v

    def to_domain(self) -> MonthRecord:
        return MonthRecord(
            id=self.id,
            month_index=self.month_index,
            label=self.label,
            is_development=self.is_development,
            new_users=self.new_users,
            marketing_budget=self.marketing_budget,
            effective_cpa=self.effective_cpa,
            arpdau=self.arpdau,
            strategy=self.strategy,
            daily_weights=tuple(self.daily_weights),
            calc_mode=self.calc_mode,
            headcount=self.headcount,
            outsource=self.outsource,
            server_override=self.server_override,
            custom_costs=dict(self.custom_costs),
        )


class PlatformModel(_Model):
    share: float = 0.0
    fee: float = 0.0


class PlatformsModel(_Model):
    ios: PlatformModel = PlatformModel(share=60.0, fee=33.0)
    android: PlatformModel = PlatformModel(share=40.0, fee=33.0)
    official: PlatformModel = PlatformModel()


class SettingsModel(_Model):
    tax_rate: float = Field(5.0, alias="taxRate")
    refund_rate: float = Field(0.1, alias="refundRate")
    ip_royalty: float = Field(0.0, alias="ipRoyalty")
    cp_royalty: float = Field(0.0, alias="cpRoyalty")
    ope_royalty: float = Field(0.0, alias="opeRoyalty")
    labor_unit_cost: float = Field(200000.0, alias="laborUnitCost")
    server_cost_ratio: float = Field(2.0, alias="serverCostRatio")
    use_server_ratio: bool = Field(True, alias="useServerRatio")
    platforms: PlatformsModel = PlatformsModel()

    def to_domain(self) -> GlobalSettings:
        p = self.platforms
        return GlobalSettings(
            tax_rate=self.tax_rate,
            refund_rate=self.refund_rate,
            ip_royalty=self.ip_royalty,
            cp_royalty=self.cp_royalty,
            ope_royalty=self.ope_royalty,
            labor_unit_cost=self.labor_unit_cost,
            server_cost_ratio=self.server_cost_ratio,
            use_server_ratio=self.use_server_ratio,
            platforms=Platforms(
                ios=PlatformSettings(share=p.ios.share, fee=p.ios.fee),
                android=PlatformSettings(share=p.android.share, fee=p.android.fee),
                official=PlatformSettings(share=p.official.share, fee=p.official.fee),
            ),
        )


class RetentionModelModel(_Model):
    default: Dict[int, float] = Field(default_factory=dict)
    overrides: Dict[int, Dict[int, float]] = Field(default_factory=dict)
    mode: str = Field("log_linear", alias="interpolationMode")

    @field_validator("mode")
    @classmethod
    def _mode(cls, v: str) -> str:
        v = _MODE_ALIASES.get(v, v)
        if v not in INTERPOLATION_MODES:
            raise ValueError(f"unknown interpolation mode {v!r}")
        return v

    @field_validator("default")
    @classmethod
    def _pct(cls, v: Dict[int, float]) -> Dict[int, float]:
        _check_anchor_map(v)
        return v

    @field_validator("overrides")
    @classmethod
    def _override_pct(cls, v: Dict[int, Dict[int, float]]) -> Dict[int, Dict[int, float]]:
        for anchors in v.values():
            _check_anchor_map(anchors)
        return v

    def to_domain(self) -> RetentionModel:
        return RetentionModel(
            default={d: p for d, p in self.default.items() if d != 0},
            overrides={m: {d: p for d, p in a.items() if d != 0} for m, a in self.overrides.items()},
            mode=self.mode,
        )


class CostItemModel(_Model):
    id: str
    name: str
    visible: bool = True
    category: str = "user-defined"
    special_type: Optional[str] = Field(None, alias="specialType")

    @field_validator("category")
    @classmethod
    def _category(cls, v: str) -> str:
        if v not in COST_CATEGORIES:
            raise ValueError(f"unknown cost category {v!r}")
        return v

    @field_validator("special_type")
    @classmethod
    def _special(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in SPECIAL_COST_TYPES:
            raise ValueError(f"unknown special cost type {v!r}")
        return v

    def to_domain(self) -> CustomCostItem:
        return CustomCostItem(
            id=self.id,
            name=self.name,
            visible=self.visible,
            category=self.category,
            special_type=self.special_type,
        )


class SnapshotModel(_Model):
    version: str
    exported_at: Optional[str] = Field(None, alias="exportedAt")
    timeline_config: Optional[TimelineConfigModel] = Field(None, alias="timelineConfig")
    timeline: Optional[List[MonthModel]] = None
    settings: Optional[SettingsModel] = None
    retention_model: Optional[RetentionModelModel] = Field(None, alias="rrModel")
    custom_cost_items: Optional[List[CostItemModel]] = Field(None, alias="customCostItems")
    removed_items: Optional[List[str]] = Field(None, alias="removedItems")

    @field_validator("removed_items")
    @classmethod
    def _removed(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is not None:
            unknown = sorted(set(v) - set(REMOVABLE_ITEMS))
            if unknown:
                raise ValueError(f"unknown removable items {unknown}")
        return v


class RetentionPresetModel(_Model):
    name: Optional[str] = None
    retention: Optional[Dict[int, float]] = None
    anchors: Optional[Dict[int, float]] = None

    def anchor_map(self) -> Dict[int, float]:
        data = self.retention if self.retention is not None else self.anchors
        if data is None:
            raise ValueError("preset has neither 'retention' nor 'anchors'")
        _check_anchor_map(data)
        return data


def _check_anchor_map(anchors: Mapping[int, float]) -> None:
    result = validate_anchors(anchors)
    if not result.is_valid:
        raise ValueError("; ".join(result.errors))


def parse_snapshot(data: Any) -> SnapshotModel:
    try:
        return SnapshotModel.model_validate(data)
    except ValidationError as exc:
        raise SnapshotFormatError(f"Malformed plan snapshot: {exc}") from exc


def parse_preset(data: Any) -> RetentionPresetModel:
    try:
        preset = RetentionPresetModel.model_validate(data)
        preset.anchor_map()
    except (ValidationError, ValueError) as exc:
        raise SnapshotFormatError(f"Malformed retention preset: {exc}") from exc
    return preset


def month_to_dict(m: MonthRecord) -> Dict[str, Any]:
    return MonthModel(
        id=m.id,
        month_index=m.month_index,
        label=m.label,
        is_development=m.is_development,
        new_users=m.new_users,
        marketing_budget=m.marketing_budget,
        effective_cpa=m.effective_cpa,
        arpdau=m.arpdau,
        strategy=m.strategy,
        daily_weights=list(m.daily_weights),
        calc_mode=m.calc_mode,
        headcount=m.headcount,
        outsource=m.outsource,
        server_override=m.server_override,
        custom_costs=dict(m.custom_costs),
    ).model_dump(by_alias=True)


def settings_to_dict(s: GlobalSettings) -> Dict[str, Any]:
    p = s.platforms
    return SettingsModel(
        tax_rate=s.tax_rate,
        refund_rate=s.refund_rate,
        ip_royalty=s.ip_royalty,
        cp_royalty=s.cp_royalty,
        ope_royalty=s.ope_royalty,
        labor_unit_cost=s.labor_unit_cost,
        server_cost_ratio=s.server_cost_ratio,
        use_server_ratio=s.use_server_ratio,
        platforms=PlatformsModel(
            ios=PlatformModel(share=p.ios.share, fee=p.ios.fee),
            android=PlatformModel(share=p.android.share, fee=p.android.fee),
            official=PlatformModel(share=p.official.share, fee=p.official.fee),
        ),
    ).model_dump(by_alias=True)


def retention_to_dict(r: RetentionModel) -> Dict[str, Any]:
    return {
        "default": {str(d): v for d, v in sorted(r.default.items())},
        "overrides": {
            str(m): {str(d): v for d, v in sorted(a.items())}
            for m, a in sorted(r.overrides.items())
        },
        "interpolationMode": r.mode,
    }


def cost_item_to_dict(c: CustomCostItem) -> Dict[str, Any]:
    return CostItemModel(
        id=c.id, name=c.name, visible=c.visible, category=c.category, special_type=c.special_type,
    ).model_dump(by_alias=True, exclude_none=True)
