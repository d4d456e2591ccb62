"""
Pytest configuration and shared fixtures.
"""

import os
import sys
from dataclasses import replace

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import GlobalSettings, Platforms, PlatformSettings  # noqa: E402
from core.schema import CustomCostItem, RetentionModel  # noqa: E402
from planning.timeline_builder import build_timeline  # noqa: E402


STANDARD_ANCHORS = {1: 40.0, 7: 20.0, 30: 10.0}


@pytest.fixture
def standard_model():
    return RetentionModel(default=dict(STANDARD_ANCHORS), mode="log_linear")


@pytest.fixture
def settings():
    return GlobalSettings(
        tax_rate=5.0,
        refund_rate=1.0,
        ip_royalty=10.0,
        cp_royalty=5.0,
        labor_unit_cost=1000.0,
        server_cost_ratio=2.0,
        use_server_ratio=True,
        platforms=Platforms(
            ios=PlatformSettings(share=60.0, fee=30.0),
            android=PlatformSettings(share=40.0, fee=20.0),
        ),
    )


@pytest.fixture
def cost_items():
    return (
        CustomCostItem(id="outs", name="Outsourcing", category="outsourcing"),
        CustomCostItem(id="trip", name="Business trips", category="biztrip"),
        CustomCostItem(id="hidden", name="Hidden", category="other", visible=False),
    )


@pytest.fixture
def funded_timeline():
    """One dev month, launch month, three operating months with spend and users."""
    timeline = build_timeline(1, 3)
    out = []
    for m in timeline:
        if m.is_development:
            out.append(m)
            continue
        out.append(
            replace(
                m,
                new_users=3000.0 * m.month_index,
                marketing_budget=9000.0 * m.month_index,
                arpdau=0.2,
                custom_costs={"outs": 500.0, "trip": 100.0, "hidden": 999.0},
            )
        )
    return out
