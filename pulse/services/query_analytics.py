"""In-memory log of coach tool calls, used to spot common query patterns."""
from __future__ import annotations

import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable


logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000


@dataclass(frozen=True)
class QueryLogEntry:
    """One tool call the model requested."""

    tool_name: str
    exercise_name: str | None = None
    normalized_name: str | None = None
    was_corrected: bool = False
    days: int | None = None
    user_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool_name": self.tool_name,
            "exercise_name": self.exercise_name,
            "normalized_name": self.normalized_name,
            "was_corrected": self.was_corrected,
            "days": self.days,
            "user_id": self.user_id,
            "timestamp": self.timestamp.isoformat(),
        }


class QueryAnalytics:
    """Bounded FIFO buffer of recent tool calls; the oldest entry is evicted first."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: deque[QueryLogEntry] = deque(maxlen=capacity)

    def record(self, entry: QueryLogEntry) -> None:
        self._entries.append(entry)
        logger.debug(
            "Query analytics: tool=%s exercise=%s corrected=%s",
            entry.tool_name,
            entry.normalized_name or entry.exercise_name,
            entry.was_corrected,
        )

    def snapshot(self) -> list[QueryLogEntry]:
        """Copy of the buffer, oldest first."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def summarize_queries(entries: Iterable[QueryLogEntry]) -> dict[str, Any]:
    """
    Aggregate a snapshot for monitoring.

    Returns:
        Dictionary with total_queries, tool_breakdown, top_exercises (ten most
        frequent, normalized name preferred), correction_rate and the last ten
        entries as recent_queries.
    """
    entries = list(entries)
    tools = Counter(entry.tool_name for entry in entries)
    exercises = Counter(
        entry.normalized_name or entry.exercise_name
        for entry in entries
        if entry.normalized_name or entry.exercise_name
    )
    corrections = sum(1 for entry in entries if entry.was_corrected)

    return {
        "total_queries": len(entries),
        "tool_breakdown": dict(tools),
        "top_exercises": [
            {"name": name, "count": count} for name, count in exercises.most_common(10)
        ],
        "correction_rate": corrections / len(entries) if entries else 0.0,
        "recent_queries": [entry.to_dict() for entry in entries[-10:]],
    }


def typo_patterns(entries: Iterable[QueryLogEntry]) -> list[dict[str, Any]]:
    """Corrected exercise names grouped by the raw input, most frequent first."""

    counts: Counter[str] = Counter()
    corrected_to: dict[str, str] = {}
    for entry in entries:
        if not (entry.was_corrected and entry.exercise_name and entry.normalized_name):
            continue
        original = entry.exercise_name.lower()
        corrected_to.setdefault(original, entry.normalized_name)
        counts[original] += 1

    return [
        {"original": original, "corrected": corrected_to[original], "count": count}
        for original, count in counts.most_common()
    ]
