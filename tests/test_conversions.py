"""Tests for rounding and time formatting helpers."""

import pytest

from pulse.services.conversions import (
    format_pace,
    format_pace_per_unit,
    parse_time_to_seconds,
    round_half_up,
)


@pytest.mark.parametrize("value,expected", [(52.5, 53), (52.49, 52), (0.5, 1), (129.0, 129)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_format_pace():
    assert format_pace(129) == "2:09"
    assert format_pace(531) == "8:51"
    assert format_pace(59.6) == "1:00"


def test_format_pace_per_unit():
    assert format_pace_per_unit(110, "400m") == "1:50/400m"


class TestParseTime:
    def test_minutes_seconds(self):
        assert parse_time_to_seconds("8:00") == 480

    def test_hours_minutes_seconds(self):
        assert parse_time_to_seconds("1:02:03") == 3723

    @pytest.mark.parametrize("value", [None, "", "abc", "8", "8:75", "1:75:00", "a:bc"])
    def test_invalid_values(self, value):
        assert parse_time_to_seconds(value) is None
