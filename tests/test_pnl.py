from dataclasses import replace

import pytest

from core.config import GlobalSettings, Platforms, PlatformSettings
from core.schema import RetentionModel
from engine.cohort import DerivedMonthMetrics, project_metrics
from engine.pnl import compute_pl, pl_to_dataframe
from planning.timeline_builder import build_timeline


def _metrics(revenues, **month_fields):
    """Hand-made metrics: one operating month per revenue figure."""
    timeline = build_timeline(0, len(revenues))
    return [
        DerivedMonthMetrics(month=replace(m, **month_fields), dau=0, gross_revenue=rev)
        for m, rev in zip(timeline[1:], revenues)
    ]


@pytest.fixture
def projected(funded_timeline, standard_model):
    return project_metrics(funded_timeline, standard_model)


class TestWaterfall:

    def test_subtotal_identities(self, projected, settings, cost_items):
        rows = compute_pl(projected, settings, cost_items)
        for r in rows:
            assert r.net_sales == pytest.approx(r.net_sales_ios + r.net_sales_android)
            assert r.channel_fee == pytest.approx(r.channel_fee_ios + r.channel_fee_android)
            assert r.cm1 == pytest.approx(r.net_sales - r.ip_cost - r.cp_cost - r.channel_fee)
            assert r.cm2 == pytest.approx(r.cm1 - r.marketing_cost)
            assert r.fc == pytest.approx(r.labor_cost + r.server_cost + r.custom_total)
            assert r.profit == pytest.approx(r.cm2 - r.fc)
            assert r.gross_sales_ios + r.gross_sales_android == pytest.approx(r.gross_revenue)

    def test_acc_profit_is_running_sum(self, projected, settings, cost_items):
        rows = compute_pl(projected, settings, cost_items)
        running = 0.0
        for r in rows:
            running += r.profit
            assert r.acc_profit == pytest.approx(running)
        assert rows[-1].acc_profit == pytest.approx(sum(r.profit for r in rows))

    def test_rates_applied(self, settings):
        rows = compute_pl(_metrics([10000.0], marketing_budget=1000.0, headcount=2.0), settings)
        r = rows[0]
        assert r.gross_sales_ios == pytest.approx(6000.0)
        assert r.gross_sales_android == pytest.approx(4000.0)
        assert r.refund == pytest.approx(100.0)
        assert r.tax == pytest.approx(500.0)
        assert r.net_sales == pytest.approx(9400.0)
        assert r.ip_cost == pytest.approx(940.0)
        assert r.cp_cost == pytest.approx(470.0)
        assert r.channel_fee_ios == pytest.approx(5640.0 * 0.30)
        assert r.channel_fee_android == pytest.approx(3760.0 * 0.20)
        assert r.marketing_cost == 1000.0
        assert r.labor_cost == 2000.0
        assert r.server_cost == pytest.approx(200.0)
        assert r.cm1_ratio == pytest.approx(r.cm1 / r.net_sales * 100)

    def test_development_month_costs_count_toward_profit(self, settings):
        timeline = build_timeline(2, 1)
        metrics = [DerivedMonthMetrics(month=m, dau=0, gross_revenue=0.0) for m in timeline]
        rows = compute_pl(metrics, settings)
        assert rows[0].profit == pytest.approx(-5 * settings.labor_unit_cost)
        assert rows[0].cm1_ratio == 0.0
        assert rows[-1].acc_profit == pytest.approx(-4 * 5 * settings.labor_unit_cost)

    def test_official_lines_are_zero(self, projected, settings):
        for r in compute_pl(projected, settings):
            assert r.gross_sales_official == 0.0
            assert r.net_sales_official == 0.0
            assert r.channel_fee_official == 0.0
            assert r.ope_cost == 0.0

    def test_even_split_when_no_platform_share(self):
        settings = GlobalSettings(
            platforms=Platforms(ios=PlatformSettings(0.0, 30.0), android=PlatformSettings(0.0, 30.0)),
        )
        r = compute_pl(_metrics([1000.0]), settings)[0]
        assert r.gross_sales_ios == pytest.approx(500.0)
        assert r.gross_sales_android == pytest.approx(500.0)

    def test_server_override(self, settings):
        metrics = _metrics([10000.0], server_override=777.0)
        assert compute_pl(metrics, settings)[0].server_cost == pytest.approx(200.0)
        manual = replace(settings, use_server_ratio=False)
        assert compute_pl(metrics, manual)[0].server_cost == 777.0


class TestCustomCosts:

    def test_visible_items_only(self, projected, settings, cost_items):
        rows = compute_pl(projected, settings, cost_items)
        for r in rows:
            if r.month.is_development:
                assert r.custom_total == 0.0
                continue
            assert r.custom_total == 600.0
            assert r.outsource_cost == 500.0

    def test_costs_without_item_are_ignored(self, projected, settings):
        rows = compute_pl(projected, settings)
        assert all(r.custom_total == 0.0 for r in rows)


class TestRemovedItems:

    def test_removed_channel_fee_flows_through(self, projected, settings):
        full = compute_pl(projected, settings)
        cut = compute_pl(projected, settings, removed_items=["channelFeeIos"])
        for a, b in zip(full, cut):
            assert b.channel_fee_ios == 0.0
            assert b.channel_fee == pytest.approx(b.channel_fee_android)
            assert b.cm1 == pytest.approx(a.cm1 + a.channel_fee_ios)
            assert b.profit == pytest.approx(a.profit + a.channel_fee_ios)

    def test_removed_refund_and_tax(self, projected, settings):
        rows = compute_pl(projected, settings, removed_items=["refund", "tax"])
        for r in rows:
            assert r.refund == 0.0 and r.tax == 0.0
            assert r.net_sales == pytest.approx(r.gross_revenue)

    @pytest.mark.parametrize("item,attr", [
        ("ipCost", "ip_cost"),
        ("cpCost", "cp_cost"),
        ("marketingCost", "marketing_cost"),
        ("laborCost", "labor_cost"),
        ("serverCost", "server_cost"),
    ])
    def test_removed_cost_lines(self, projected, settings, item, attr):
        full = compute_pl(projected, settings)
        cut = compute_pl(projected, settings, removed_items=[item])
        assert all(getattr(r, attr) == 0.0 for r in cut)
        assert cut[-1].acc_profit == pytest.approx(
            full[-1].acc_profit + sum(getattr(r, attr) for r in full)
        )

    def test_display_only_removals_do_not_change_totals(self, projected, settings):
        full = compute_pl(projected, settings)
        cut = compute_pl(
            projected, settings,
            removed_items=["grossSalesIos", "grossSalesAndroid", "netSalesIos", "netSalesAndroid"],
        )
        assert [r.profit for r in cut] == pytest.approx([r.profit for r in full])


def test_pl_dataframe_columns(projected, settings):
    frame = pl_to_dataframe(compute_pl(projected, settings))
    assert len(frame) == len(projected)
    for col in ("label", "gross_revenue", "net_sales", "cm1", "cm2", "fc", "profit", "acc_profit"):
        assert col in frame.columns
    assert "metrics" not in frame.columns


def test_empty_metrics():
    assert compute_pl([], GlobalSettings()) == []


def test_retention_free_plan_still_balances(settings):
    timeline = build_timeline(0, 2)
    metrics = project_metrics(timeline, RetentionModel())
    rows = compute_pl(metrics, settings)
    assert rows[-1].acc_profit == pytest.approx(sum(r.profit for r in rows))
