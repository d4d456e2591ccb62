"""
Plan configuration: global monetization/cost settings and timeline bounds.
Rates are percentages (5.0 means 5%).
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PlatformSettings:
    share: float = 0.0  # % of gross revenue
    fee: float = 0.0    # channel fee, % of platform net sales


@dataclass(frozen=True)
class Platforms:
    ios: PlatformSettings = field(default_factory=lambda: PlatformSettings(share=60.0, fee=33.0))
    android: PlatformSettings = field(default_factory=lambda: PlatformSettings(share=40.0, fee=33.0))
    official: PlatformSettings = field(default_factory=PlatformSettings)

    def normalized_shares(self) -> tuple:
        """
        iOS/Android split as fractions summing to 1.
        Official revenue is folded into the two stores upstream; 50/50 when both are 0.
        """
        total = self.ios.share + self.android.share
        if total > 0:
            return self.ios.share / total, self.android.share / total
        return 0.5, 0.5


@dataclass(frozen=True)
class GlobalSettings:
    tax_rate: float = 5.0
    refund_rate: float = 0.1
    ip_royalty: float = 0.0
    cp_royalty: float = 0.0
    ope_royalty: float = 0.0
    labor_unit_cost: float = 200000.0

    # server cost is either server_cost_ratio % of gross revenue or the
    # month's manual server_override
    server_cost_ratio: float = 2.0
    use_server_ratio: bool = True

    platforms: Platforms = field(default_factory=Platforms)


@dataclass(frozen=True)
class TimelineConfig:
    dev_start: int = 0
    ops_end: int = 12
