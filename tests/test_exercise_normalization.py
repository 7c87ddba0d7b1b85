"""Tests for exercise-name normalisation."""

import pytest

from pulse.services.exercise_normalization import normalize_exercise


class TestNormalizeExercise:
    @pytest.mark.parametrize(
        "text,expected",
        [("squat", "squat"), ("DL", "deadlift"), ("c&j", "clean_and_jerk"), ("squirt", "squat")],
    )
    def test_exact_alias(self, text, expected):
        result = normalize_exercise(text)

        assert result.normalized == expected
        assert result.confidence == 1.0

    def test_exact_canonical_is_not_a_correction(self):
        assert normalize_exercise("squat").was_corrected is False
        assert normalize_exercise("DL").was_corrected is True

    def test_partial_match_prefers_longest_alias(self):
        result = normalize_exercise("front squat 5x3")

        assert result.normalized == "front_squat"
        assert result.confidence == 0.85
        assert result.was_corrected is True

    def test_fuzzy_match(self):
        result = normalize_exercise("deedlfit")

        assert result.normalized == "deadlift"
        assert 0.6 <= result.confidence < 1.0
        assert result.was_corrected is True

    def test_no_match(self):
        result = normalize_exercise("xyz123")

        assert result.normalized == "xyz123"
        assert result.confidence == 0.0
        assert result.was_corrected is False
        assert result.suggestions == ["Squat", "Deadlift", "Bench Press", "Run", "Row"]

    def test_empty_input(self):
        assert normalize_exercise("   ").confidence == 0.0
