from dataclasses import replace

import pytest

from core.config import GlobalSettings, Platforms, PlatformSettings
from core.schema import RetentionModel
from engine.cohort import DerivedMonthMetrics
from engine.pnl import compute_pl
from kpi import (
    average_arpdau,
    average_channel_fee_ratio,
    ltv,
    net_ltv,
    payback_month,
    retention_days,
    roas,
    roi,
    summarize_plan,
)
from planning.timeline_builder import build_timeline
from retention import synthesize

ANCHORS = {1: 40.0, 7: 20.0, 30: 10.0}

NO_FRICTION = GlobalSettings(
    tax_rate=0.0,
    refund_rate=0.0,
    labor_unit_cost=0.0,
    server_cost_ratio=0.0,
    platforms=Platforms(ios=PlatformSettings(60.0, 0.0), android=PlatformSettings(40.0, 0.0)),
)


@pytest.fixture
def model():
    return RetentionModel(default=dict(ANCHORS))


@pytest.fixture
def rows():
    """Two dev months, then three months spending 1000 against revenue 500 / 1500 / 1500."""
    timeline = build_timeline(1, 3)
    revenue = {1: 500.0, 2: 1500.0, 3: 1500.0}
    metrics = []
    for m in timeline:
        if not m.is_development:
            m = replace(m, marketing_budget=1000.0)
        metrics.append(DerivedMonthMetrics(month=m, dau=0, gross_revenue=revenue.get(m.month_index, 0.0)))
    return compute_pl(metrics, NO_FRICTION)


class TestLtv:

    def test_retention_days_sums_curve(self, model):
        curve = synthesize(ANCHORS)
        assert retention_days(model, 90) == pytest.approx(curve[:90].sum() / 100)
        assert retention_days(model, 1) == pytest.approx(1.0)
        assert retention_days(model, 0) == 0.0

    def test_ltv_scales_with_arpdau(self, model):
        assert ltv(model, 0.2, 180) == pytest.approx(retention_days(model, 180) * 0.2)
        assert ltv(model, 0.4, 180) == pytest.approx(2 * ltv(model, 0.2, 180))

    def test_longer_window_never_lowers_ltv(self, model):
        assert ltv(model, 0.2, 30) < ltv(model, 0.2, 90) < ltv(model, 0.2, 360)

    def test_net_ltv(self, model):
        assert net_ltv(model, 0.2, 0.3, 90) == pytest.approx(ltv(model, 0.2, 90) * 0.7)

    def test_month_override_used(self, model):
        strong = model.with_anchors({1: 80.0, 30: 50.0}, month_index=2)
        assert ltv(strong, 0.2, 90, month_index=2) > ltv(strong, 0.2, 90)
        assert ltv(strong, 0.2, 90, month_index=3) == pytest.approx(ltv(model, 0.2, 90))

    def test_average_channel_fee_ratio(self, settings):
        assert average_channel_fee_ratio(settings) == pytest.approx(0.26)
        assert average_channel_fee_ratio(GlobalSettings()) == pytest.approx(0.33)
        flat = GlobalSettings(platforms=Platforms(ios=PlatformSettings(0, 10), android=PlatformSettings(0, 10)))
        assert average_channel_fee_ratio(flat) == 0.3

    def test_average_arpdau(self):
        timeline = build_timeline(1, 2)
        assert average_arpdau(timeline) == pytest.approx(0.15)
        assert average_arpdau(timeline[:1], default=0.5) == 0.5


class TestReturns:

    def test_payback_month(self, rows):
        assert [r.acc_profit for r in rows] == pytest.approx([0.0, 0.0, -500.0, 0.0, 500.0])
        assert payback_month(rows) == "M3"

    def test_no_payback(self, rows):
        assert payback_month(rows[:3]) is None

    def test_roi(self, rows):
        assert roi(rows, 3) == pytest.approx(500.0 / 3000.0 * 100)
        assert roi(rows, 1) == pytest.approx(-50.0)

    def test_roas(self, rows):
        assert roas(rows, 2) == pytest.approx(100.0)
        assert roas(rows, 0) == 0.0

    def test_summary(self, rows, model):
        summary = summarize_plan(rows, model, NO_FRICTION, ltv_days=30, roi_months=3)
        assert summary.payback_month == "M3"
        assert summary.peak_revenue == 1500.0
        assert summary.final_acc_profit == pytest.approx(500.0)
        assert summary.ltv == pytest.approx(ltv(model, 0.15, 30))
        assert summary.roi == pytest.approx(roi(rows, 3))

        frame = summary.to_dataframe()
        assert list(frame.columns) == ["Metric", "Value"]
        assert len(frame) == 5

    def test_summary_net_and_roas(self, rows, model):
        summary = summarize_plan(
            rows, model, NO_FRICTION, ltv_days=90, ltv_mode="net", roi_months=2, roi_mode="marketing",
        )
        assert summary.ltv == pytest.approx(ltv(model, 0.15, 90))
        assert summary.roi == pytest.approx(100.0)
        assert "Net LTV (90d)" in summary.to_dataframe()["Metric"].tolist()
