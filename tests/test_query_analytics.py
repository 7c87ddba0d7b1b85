"""Tests for the tool-call analytics buffer."""

import pytest

from pulse.services.query_analytics import (
    QueryAnalytics,
    QueryLogEntry,
    summarize_queries,
    typo_patterns,
)


class TestQueryAnalytics:
    def test_record_and_snapshot(self):
        analytics = QueryAnalytics(capacity=10)
        entry = QueryLogEntry(tool_name="getRecentLogs", days=7)

        analytics.record(entry)

        assert analytics.snapshot() == [entry]
        assert len(analytics) == 1

    def test_fifo_eviction(self):
        analytics = QueryAnalytics(capacity=3)
        for i in range(5):
            analytics.record(QueryLogEntry(tool_name=f"tool{i}"))

        assert [e.tool_name for e in analytics.snapshot()] == ["tool2", "tool3", "tool4"]

    def test_snapshot_is_a_copy(self):
        analytics = QueryAnalytics()
        analytics.record(QueryLogEntry(tool_name="getBiometrics"))

        snapshot = analytics.snapshot()
        snapshot.clear()

        assert len(analytics.snapshot()) == 1

    def test_instances_are_independent(self):
        first, second = QueryAnalytics(), QueryAnalytics()
        first.record(QueryLogEntry(tool_name="getBiometrics"))
        assert second.snapshot() == []

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            QueryAnalytics(capacity=0)

    def test_timestamp_is_utc(self):
        entry = QueryLogEntry(tool_name="findLastLog")
        assert entry.timestamp.tzinfo is not None


class TestSummaries:
    @pytest.fixture()
    def entries(self):
        return [
            QueryLogEntry("getExercisePR", "squirt", "squat", True),
            QueryLogEntry("getExercisePR", "Squirt", "squat", True),
            QueryLogEntry("findLastLog", "deadlift", "deadlift", False),
            QueryLogEntry("getBiometrics", days=7),
        ]

    def test_summarize_queries(self, entries):
        summary = summarize_queries(entries)

        assert summary["total_queries"] == 4
        assert summary["tool_breakdown"] == {"getExercisePR": 2, "findLastLog": 1, "getBiometrics": 1}
        assert summary["top_exercises"][0] == {"name": "squat", "count": 2}
        assert summary["correction_rate"] == 0.5
        assert len(summary["recent_queries"]) == 4
        assert summary["recent_queries"][-1]["tool_name"] == "getBiometrics"

    def test_summarize_empty(self):
        summary = summarize_queries([])

        assert summary["total_queries"] == 0
        assert summary["correction_rate"] == 0.0

    def test_typo_patterns(self, entries):
        assert typo_patterns(entries) == [{"original": "squirt", "corrected": "squat", "count": 2}]
