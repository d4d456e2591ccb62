from dataclasses import replace

import pytest

from core.errors import InvalidTimelineRangeError
from planning.timeline_builder import build_timeline, operating_months
from planning.validators import validate_timeline, validate_timeline_range


class TestBuildTimeline:

    def test_indices_labels_and_phases(self):
        timeline = build_timeline(2, 3)
        assert [m.month_index for m in timeline] == [-2, -1, 0, 1, 2, 3]
        assert [m.label for m in timeline] == ["M-2", "M-1", "M0", "M1", "M2", "M3"]
        assert [m.is_development for m in timeline] == [True, True, True, False, False, False]

    def test_new_months_get_planning_defaults(self):
        m = build_timeline(0, 1)[-1]
        assert m.new_users == 0
        assert m.marketing_budget == 0
        assert m.effective_cpa == 4.0
        assert m.arpdau == 0.15
        assert m.headcount == 5
        assert m.strategy == "uniform"
        assert m.calc_mode == "Fix_Budget_NUU"
        assert sum(m.daily_weights) == pytest.approx(100.0)

    def test_ids_are_unique(self):
        timeline = build_timeline(6, 36)
        assert len({m.id for m in timeline}) == len(timeline)

    def test_rebuild_with_same_range_is_identity(self):
        first = build_timeline(2, 4)
        again = build_timeline(2, 4, previous=first)
        assert again == first

    def test_resize_keeps_edits_and_adds_fresh_months(self):
        first = build_timeline(1, 2)
        edited = [replace(m, new_users=1234.0) if m.month_index == 2 else m for m in first]

        grown = build_timeline(3, 5, previous=edited)
        by_index = {m.month_index: m for m in grown}
        assert by_index[2].new_users == 1234.0
        assert by_index[2].id == edited[-1].id
        assert by_index[5].new_users == 0
        assert len({m.id for m in grown}) == len(grown)

    def test_shrink_drops_out_of_range_months(self):
        first = build_timeline(2, 6)
        shrunk = build_timeline(0, 2, previous=first)
        assert [m.month_index for m in shrunk] == [0, 1, 2]
        assert {m.id for m in shrunk} <= {m.id for m in first}

    @pytest.mark.parametrize("dev_start,ops_end", [(-1, 12), (0, 0), (3, -2)])
    def test_invalid_range_rejected(self, dev_start, ops_end):
        with pytest.raises(InvalidTimelineRangeError):
            build_timeline(dev_start, ops_end)
        assert not validate_timeline_range(dev_start, ops_end).is_valid

    def test_operating_months(self):
        ops = operating_months(build_timeline(2, 3))
        assert [m.month_index for m in ops] == [1, 2, 3]


class TestValidateTimeline:

    def test_built_timeline_is_valid(self):
        result = validate_timeline(build_timeline(2, 12))
        assert result.is_valid
        assert "All checks passed" in result.summary()

    def test_duplicate_ids_and_order(self):
        timeline = build_timeline(0, 2)
        broken = [timeline[0], replace(timeline[2], id=timeline[0].id), timeline[1]]
        result = validate_timeline(broken)
        assert not result.is_valid
        assert len(result.errors) == 2

    def test_bad_custom_weights_reported(self):
        timeline = build_timeline(0, 1)
        bad = replace(timeline[1], strategy="custom", daily_weights=tuple([1.0] * 30))
        result = validate_timeline([timeline[0], bad])
        assert not result.is_valid
        assert result.errors[0].startswith("M1:")
