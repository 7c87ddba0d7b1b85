"""Tests for derived paces and workout template substitution."""

from pulse.models.schemas import AthleteProfile
from pulse.services.pace_zones import (
    calculate_2k_row_derived_paces,
    calculate_400m_pace_from_mile,
    calculate_5k_derived_paces,
    parse_workout_template,
)


class TestDerivedPaces:
    """Test pace calculators."""

    def test_5k_derived_paces(self):
        assert calculate_5k_derived_paces(1440) == {
            "zone2_pace_per_mile": 531,
            "tempo_pace_per_mile": 488,
        }

    def test_2k_row_derived_paces(self):
        assert calculate_2k_row_derived_paces(480) == {
            "aerobic_interval_500m": 129,
            "anaerobic_sprint_250m": 53,
        }

    def test_sprint_rounds_half_up(self):
        """(120 - 15) / 2 = 52.5 must round to 53, not banker's 52."""
        assert calculate_2k_row_derived_paces(480)["anaerobic_sprint_250m"] == 53

    def test_400m_from_mile(self):
        assert calculate_400m_pace_from_mile(480) == 110


class TestParseWorkoutTemplate:
    """Test {{token}} substitution."""

    def test_no_profile_returns_text_unchanged(self):
        text = "Row 5x500m @ {{row_interval_pace_500m}}"
        assert parse_workout_template(text, None) is text

    def test_text_without_tokens_unchanged(self):
        assert parse_workout_template("Back Squat 5x5", {"squat_max": 300}) == "Back Squat 5x5"

    def test_row_tokens(self):
        text = "Row 5x500m @ {{row_interval_pace_500m}}, sprints @ {{ row_sprint_pace_250m }}"
        result = parse_workout_template(text, {"row_2k_sec": 480})
        assert result == "Row 5x500m @ 2:09/500m, sprints @ 0:53/250m"

    def test_run_tokens_from_5k(self):
        result = parse_workout_template(
            "Z2 {{run_zone2_pace_mile}} / tempo {{run_tempo_pace_mile}}",
            AthleteProfile(k5_time_sec=1440),
        )
        assert result == "Z2 8:51/mile / tempo 8:08/mile"

    def test_400m_uses_default_mile_time(self):
        """Mile time falls back to the 480s default when absent."""
        assert parse_workout_template("{{run_400m_pace}}", {"squat_max": 300}) == "1:50/400m"

    def test_missing_5k_leaves_token_in_place(self):
        text = "Zone 2 @ {{run_zone2_pace_mile}}"
        assert parse_workout_template(text, {"squat_max": 300}) == text

    def test_unknown_token_left_verbatim(self, caplog):
        caplog.set_level("WARNING", logger="pulse.services.pace_zones")
        text = "Do {{mystery_token}} then {{max_hr}}"

        result = parse_workout_template(text, {"max_hr": 190})

        assert result == "Do {{mystery_token}} then 190 bpm"
        assert "mystery_token" in caplog.text

    def test_hr_zone_tokens_use_default_max_hr(self):
        result = parse_workout_template("Easy ({{zone_2_hr}})", {"squat_max": 300})
        # 73-82% of 196
        assert result == "Easy (143-161 bpm)"

    def test_hr_zone_tokens_use_profile_max_hr(self):
        result = parse_workout_template("{{zone_5_hr}}", {"max_hr": 200})
        assert result == "190-200 bpm"
