from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Iterable, Optional

from models import Exam, StudyDay


@dataclass(frozen=True)
class UnitProgress:
    completed: FrozenSet[int]
    remaining: int
    next_unit: int


def completed_units(exam_id: str, days: Iterable[StudyDay]) -> FrozenSet[int]:
    units = set()
    for day in days:
        for assignment in day.exams:
            if assignment.exam_id == exam_id and assignment.completed:
                units.update(assignment.units)
    return frozenset(units)


def next_unit_cursor(completed: Iterable[int]) -> int:
    # Continue after the highest completed unit; out-of-order completions
    # would otherwise be handed out a second time.
    return max(completed, default=0) + 1


def unit_progress(exam: Exam, days: Iterable[StudyDay]) -> UnitProgress:
    done = completed_units(exam.exam_id, days)
    return UnitProgress(
        completed=done,
        remaining=max(exam.total_units - len(done), 0),
        next_unit=next_unit_cursor(done),
    )


def latest_completed_day(exam_id: str, days: Iterable[StudyDay]) -> Optional[date]:
    completed_dates = [d.day for d in days if d.has_completed(exam_id)]
    return max(completed_dates, default=None)
