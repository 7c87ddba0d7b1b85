"""Parser for the master training-plan markdown document.

The plan follows a fixed layout:

    ## PHASE 1: Foundation
    #### MONDAY - Heavy Lower
    - Back Squat 5x5 @ 75%
    * **TUESDAY** Conditioning
      1. Row 5x500m @ {{row_interval_pace_500m}}

Phase sections open at ``## PHASE <n>``. Day sections open at a ``####``
heading whose first word is a weekday, or at a ``* **WEEKDAY**`` bullet, and
close at the next day marker, any heading of level 4 or higher, or the next
phase. Exercise lines start with ``-``, ``*`` or ``N.``. Text that does not
follow the layout is ignored, so a malformed plan yields empty sections
rather than an error.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Callable


logger = logging.getLogger(__name__)

WEEKDAYS: tuple[str, ...] = (
    "MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY",
)

PHASE_HEADING = re.compile(r"^##\s+PHASE\s+(\d+)\b(.*)$", re.IGNORECASE)
HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
DAY_BULLET = re.compile(r"^[-*]\s+\*\*\s*([A-Za-z]+)\b(.*?)\*\*(.*)$")
LEADING_WORD = re.compile(r"^[*_\s]*([A-Za-z]+)\b(.*)$")
EXERCISE_LINE = re.compile(r"^(?:[-*]|\d+\.)\s+\S")
_SEPARATORS = " \t:-–—*_"


@dataclass(frozen=True)
class PlanDay:
    """One weekday's prescribed session inside a phase."""

    name: str
    title: str
    exercises: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PlanPhase:
    """A ``## PHASE <n>`` section; ``order`` lists its weekdays as they appear in the document."""

    number: int
    title: str
    days: dict[str, PlanDay] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"Phase {self.number}: {self.title}" if self.title else f"Phase {self.number}"

    def add_day(self, day: PlanDay) -> bool:
        """Register ``day``; returns False when the weekday already exists."""

        if day.name in self.days:
            return False
        self.days[day.name] = day
        self.order.append(day.name)
        return True

    def day(self, name: str | None) -> PlanDay | None:
        if not name:
            return None
        return self.days.get(name.strip().upper())

    def ordered_days(self) -> list[PlanDay]:
        return [self.days[name] for name in self.order]

    def summary(self) -> str:
        """Phase title plus the weekdays it schedules."""

        schedule = ", ".join(self.order) if self.order else "Unknown"
        return f"{self.label}\nSchedule: {schedule}"

    def outline(self, line_formatter: Callable[[str], str] | None = None) -> str:
        """Every day with its exercise lines, each passed through ``line_formatter`` if given."""

        blocks = []
        for day in self.ordered_days():
            exercises = [line_formatter(line) for line in day.exercises] if line_formatter else day.exercises
            lines = [f"{day.name} - {day.title}"] + exercises
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)


@dataclass(frozen=True)
class PlanDocument:
    phases: dict[int, PlanPhase] = field(default_factory=dict)

    def phase(self, number: int) -> PlanPhase | None:
        return self.phases.get(number)


def _clean_title(text: str) -> str:
    return text.replace("**", "").strip(_SEPARATORS)


def _match_day(line: str) -> tuple[str, str] | None:
    """Return (WEEKDAY, title) when ``line`` opens a day section."""

    bullet = DAY_BULLET.match(line)
    if bullet and bullet.group(1).upper() in WEEKDAYS:
        name = bullet.group(1).upper()
        title = _clean_title(f"{bullet.group(2)} {bullet.group(3)}")
        return name, title or name.title()

    heading = HEADING.match(line)
    if heading and len(heading.group(1)) == 4:
        word = LEADING_WORD.match(heading.group(2))
        if word and word.group(1).upper() in WEEKDAYS:
            name = word.group(1).upper()
            title = _clean_title(word.group(2))
            return name, title or name.title()

    return None


def parse_plan_document(text: str) -> PlanDocument:
    """Parse plan markdown into phases, days and exercise lines."""

    document = PlanDocument()
    phase: PlanPhase | None = None
    day: PlanDay | None = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        phase_match = PHASE_HEADING.match(line)
        if phase_match:
            number = int(phase_match.group(1))
            day = None
            if number in document.phases:
                logger.warning("Duplicate PHASE %d section ignored", number)
                phase = None
                continue
            phase = PlanPhase(number=number, title=_clean_title(phase_match.group(2)))
            document.phases[number] = phase
            continue

        if phase is None:
            continue

        day_match = _match_day(line)
        if day_match:
            name, title = day_match
            day = PlanDay(name=name, title=title)
            # First occurrence of a weekday wins (e.g. repeated week blocks).
            if not phase.add_day(day):
                day = None
            continue

        heading = HEADING.match(line)
        if heading:
            level = len(heading.group(1))
            if level <= 2:
                phase = None
            if level <= 4:
                day = None
            continue

        if day is not None and EXERCISE_LINE.match(line):
            day.exercises.append(line)

    return document


@lru_cache(maxsize=8)
def _parse_cached(path: str, mtime_ns: int) -> PlanDocument:
    text = Path(path).read_text(encoding="utf-8")
    document = parse_plan_document(text)
    logger.info("Parsed plan document %s (%d phases)", path, len(document.phases))
    return document


def read_plan_document(path: Path | str) -> PlanDocument:
    """Read and parse a plan file, reusing the parsed tree while the file is unchanged."""

    resolved = Path(path).resolve()
    return _parse_cached(str(resolved), resolved.stat().st_mtime_ns)


async def load_plan_document(path: Path | str) -> PlanDocument:
    """Async wrapper that reads the plan in a worker thread.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not UTF-8 text
    """
    return await asyncio.to_thread(read_plan_document, path)
