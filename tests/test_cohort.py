from dataclasses import replace

import numpy as np
import pytest

from core.schema import RetentionModel
from engine.cohort import cohort_daily_dau, project_metrics
from planning.timeline_builder import build_timeline
from retention import synthesize

ANCHORS = {1: 40.0, 7: 20.0, 30: 10.0}


def _manual_revenue(cohorts, month_index, curve, arpdau):
    """Straight double loop over cohorts, install days and active days."""
    total = 0.0
    for cohort_index, new_users in cohorts:
        for day in range(1, 31):
            for install_day in range(1, 31):
                age = (month_index - cohort_index) * 30 + (day - install_day)
                if age < 0:
                    continue
                rate = curve[age] if age < len(curve) else 0.01
                total += new_users / 30 * rate / 100 * arpdau
    return total


@pytest.fixture
def model():
    return RetentionModel(default=dict(ANCHORS))


def _with_users(timeline, users_by_index, arpdau=0.2):
    return [
        replace(m, new_users=users_by_index.get(m.month_index, 0.0), arpdau=arpdau)
        if not m.is_development else m
        for m in timeline
    ]


class TestProjectMetrics:

    def test_one_month_scenario(self, model):
        timeline = _with_users(build_timeline(0, 1), {1: 10000.0})
        expected = _manual_revenue([(1, 10000.0)], 1, synthesize(ANCHORS, "log_linear"), 0.2)

        first = project_metrics(timeline, model)
        again = project_metrics(timeline, model)
        assert first[1].gross_revenue == pytest.approx(expected)
        assert first == again

    def test_single_cohort_matches_manual_sum(self, model):
        timeline = _with_users(build_timeline(0, 2), {1: 3000.0})
        curve = synthesize(ANCHORS, "log_linear")

        metrics = project_metrics(timeline, model)
        assert len(metrics) == 3
        assert metrics[0].gross_revenue == 0.0 and metrics[0].dau == 0

        for m in metrics[1:]:
            expected = _manual_revenue([(1, 3000.0)], m.month.month_index, curve, 0.2)
            assert m.gross_revenue == pytest.approx(expected)
            assert m.dau == round(expected / 0.2 / 30)

    def test_cohorts_superimpose(self, model):
        timeline = _with_users(build_timeline(0, 3), {1: 3000.0, 2: 1500.0, 3: 600.0})
        curve = synthesize(ANCHORS, "log_linear")
        cohorts = [(1, 3000.0), (2, 1500.0), (3, 600.0)]

        metrics = project_metrics(timeline, model)
        for m in metrics[1:]:
            idx = m.month.month_index
            expected = _manual_revenue([c for c in cohorts if c[0] <= idx], idx, curve, 0.2)
            assert m.gross_revenue == pytest.approx(expected)

    def test_development_months_have_no_revenue(self, model):
        timeline = build_timeline(3, 1)
        timeline = [replace(m, new_users=5000.0) for m in timeline]
        metrics = project_metrics(timeline, model)
        assert [m.gross_revenue for m in metrics[:4]] == [0.0] * 4
        assert [m.dau for m in metrics[:4]] == [0] * 4
        # only the operating month's own cohort counts
        expected = _manual_revenue([(1, 5000.0)], 1, synthesize(ANCHORS), 0.15)
        assert metrics[4].gross_revenue == pytest.approx(expected)

    def test_override_curve_applies_to_its_cohort_only(self, model):
        timeline = _with_users(build_timeline(0, 2), {1: 3000.0, 2: 3000.0})
        strong = {1: 80.0, 7: 60.0, 30: 50.0}
        overridden = model.with_anchors(strong, month_index=2)

        base = project_metrics(timeline, model)
        with_override = project_metrics(timeline, overridden)
        assert with_override[1].gross_revenue == pytest.approx(base[1].gross_revenue)
        assert with_override[2].gross_revenue > base[2].gross_revenue

        expected = (
            _manual_revenue([(1, 3000.0)], 2, synthesize(ANCHORS), 0.2)
            + _manual_revenue([(2, 3000.0)], 2, synthesize(strong), 0.2)
        )
        assert with_override[2].gross_revenue == pytest.approx(expected)

    def test_zero_anchors_leave_only_day_zero(self):
        timeline = _with_users(build_timeline(0, 1), {1: 3000.0})
        metrics = project_metrics(timeline, RetentionModel())
        # only same-day installs (age 0, 100%) count: 100 installs on each of 30 days
        assert metrics[1].gross_revenue == pytest.approx(3000.0 * 0.2)
        assert metrics[1].dau == 100

    def test_smart_curvature_mode_is_used(self, model):
        timeline = _with_users(build_timeline(0, 1), {1: 3000.0})
        smart = replace(model, mode="smart_curvature")
        expected = _manual_revenue([(1, 3000.0)], 1, synthesize(ANCHORS, "smart_curvature"), 0.2)
        assert project_metrics(timeline, smart)[1].gross_revenue == pytest.approx(expected)


class TestCohortDailyDau:

    def test_single_install_day(self):
        cohort = replace(
            build_timeline(0, 1)[-1],
            new_users=1000.0,
            strategy="custom",
            daily_weights=tuple([100.0] + [0.0] * 29),
        )
        curve = synthesize(ANCHORS)
        dau = cohort_daily_dau(cohort, 0, curve)
        np.testing.assert_allclose(dau, 1000.0 * curve[0:30] / 100.0)

    def test_ages_past_horizon_use_tail_retention(self):
        cohort = replace(build_timeline(0, 1)[-1], new_users=3000.0)
        dau = cohort_daily_dau(cohort, 25, synthesize(ANCHORS))
        np.testing.assert_allclose(dau, np.full(30, 3000.0 * 0.01 / 100.0))
