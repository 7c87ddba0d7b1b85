"""Tests for the program calendar and checkpoint weeks."""

import pytest

from pulse.services.checkpoints import (
    CHECKPOINT_WEEKS,
    get_checkpoint,
    get_next_checkpoint_week,
    is_checkpoint_week,
    is_testing_week,
    phase_for_week,
)


class TestCheckpointWeeks:
    def test_checkpoint_weeks(self):
        for week in CHECKPOINT_WEEKS:
            assert is_checkpoint_week(week)
        assert not is_checkpoint_week(9)

    def test_testing_weeks(self):
        assert [w for w in range(1, 53) if is_testing_week(w)] == [37, 44, 51]

    def test_get_checkpoint(self):
        checkpoint = get_checkpoint(8)

        assert checkpoint is not None
        assert checkpoint.week == 8
        names = [test.name for test in checkpoint.tests]
        assert "5k Run Time Trial" in names
        assert any("row_2k_sec" in test.updates for test in checkpoint.tests)

    def test_week_37_schedule(self):
        checkpoint = get_checkpoint(37)
        assert checkpoint.schedule["friday"] == ("Back Squat 1RM", "Deadlift 1RM")

    def test_non_checkpoint_week(self):
        assert get_checkpoint(10) is None

    @pytest.mark.parametrize("week,expected", [(1, 8), (8, 20), (21, 37), (50, 51), (51, None)])
    def test_next_checkpoint(self, week, expected):
        assert get_next_checkpoint_week(week) == expected


@pytest.mark.parametrize(
    "week,phase",
    [(1, 1), (8, 1), (9, 2), (20, 2), (21, 3), (37, 3), (38, 4), (44, 4), (45, 5), (52, 5), (60, 5)],
)
def test_phase_for_week(week, phase):
    assert phase_for_week(week) == phase
