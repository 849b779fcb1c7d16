"""Lifecycle edits for exams, study days and logged sessions.

Every function returns new objects; callers hand edited days to
``planner_core.apply_day_edit`` so completions trigger re-planning.
"""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from models import (
    EXAM_COLORS,
    Exam,
    PlannerError,
    StudyDay,
    StudyDayExam,
    StudySession,
    UnknownDayError,
    UnknownExamError,
)

logger = logging.getLogger(__name__)


def generate_exam_color() -> str:
    return random.choice(EXAM_COLORS)


def add_exam(exams: Sequence[Exam], exam: Exam) -> Tuple[Tuple[Exam, ...], Exam]:
    if not exam.exam_id:
        exam = replace(exam, exam_id=uuid.uuid4().hex)
    if any(e.exam_id == exam.exam_id for e in exams):
        raise PlannerError(f"Exam id {exam.exam_id} already exists")
    if exam.color not in EXAM_COLORS:
        exam = replace(exam, color=generate_exam_color())
    logger.info("Added exam %s (%s)", exam.name, exam.exam_id)
    return tuple(exams) + (exam,), exam


def update_exam(exams: Sequence[Exam], updated: Exam) -> Tuple[Tuple[Exam, ...], bool]:
    """Replace an exam; the flag tells whether its existing plan no longer matches.

    A size or mode change disconnects the plan; it is only rebuilt when
    the user regenerates.
    """
    current = next((e for e in exams if e.exam_id == updated.exam_id), None)
    if current is None:
        raise UnknownExamError(updated.exam_id)
    disconnected = (
        current.use_pages != updated.use_pages
        or current.total_units != updated.total_units
    )
    if disconnected:
        logger.info("Exam %s changed size or mode; plan needs regeneration", updated.exam_id)
    return tuple(updated if e.exam_id == updated.exam_id else e for e in exams), disconnected


def delete_exam(
    exam_id: str,
    exams: Sequence[Exam],
    days: Iterable[StudyDay],
    sessions: Iterable[StudySession],
    today: date,
) -> Tuple[Tuple[Exam, ...], Tuple[StudyDay, ...], Tuple[StudySession, ...]]:
    if not any(e.exam_id == exam_id for e in exams):
        raise UnknownExamError(exam_id)
    remaining_days = []
    for day in days:
        if day.day >= today and day.has_assignment(exam_id):
            day = day.with_exams(a for a in day.exams if a.exam_id != exam_id)
        remaining_days.append(day)
    return (
        tuple(e for e in exams if e.exam_id != exam_id),
        tuple(remaining_days),
        tuple(s for s in sessions if s.exam_id != exam_id),
    )


def find_day(days: Iterable[StudyDay], day_date: date) -> StudyDay:
    for day in days:
        if day.day == day_date:
            return day
    raise UnknownDayError(day_date.isoformat())


def _target_index(day: StudyDay, exam_id: str, review: Optional[bool]) -> int:
    candidates = [
        i for i, a in enumerate(day.exams)
        if a.exam_id == exam_id and (review is None or a.is_review == review)
    ]
    if not candidates:
        raise UnknownExamError(f"No assignment for exam {exam_id} on {day.day}")
    # Prefer the study assignment when a day carries both kinds.
    study = [i for i in candidates if not day.exams[i].is_review]
    return (study or candidates)[0]


def set_completion(
    day: StudyDay,
    exam_id: str,
    completed: bool,
    actual_hours: Optional[float] = None,
    units: Optional[Iterable[int]] = None,
    review: Optional[bool] = None,
    total_units: Optional[int] = None,
) -> StudyDay:
    """Mark an assignment done (logging hours) or undo it.

    Realized units must lie within 1..total_units when the exam size is
    given. Undoing keeps the unit list and clears the hours.
    """
    if units is not None:
        units = sorted(set(units))
        upper = total_units if total_units is not None else float("inf")
        invalid = [u for u in units if u < 1 or u > upper]
        if invalid:
            raise PlannerError(f"Units out of range for exam {exam_id}: {invalid}")
    index = _target_index(day, exam_id, review)
    assignment = day.exams[index]
    if completed:
        assignment = replace(
            assignment,
            completed=True,
            actual_hours=assignment.planned_hours if actual_hours is None else actual_hours,
            units=assignment.units if units is None else tuple(units),
        )
    else:
        assignment = replace(assignment, completed=False, actual_hours=0.0)
    exams = list(day.exams)
    exams[index] = assignment
    return day.with_exams(exams)


def set_available_hours(day: StudyDay, hours: float) -> StudyDay:
    if hours < 0:
        raise PlannerError("Available hours cannot be negative")
    return replace(day, available_hours=hours, custom_modified=True)


def set_day_available(day: StudyDay, available: bool) -> StudyDay:
    return replace(day, available=available)


def move_assignment(
    days: Iterable[StudyDay],
    exam_id: str,
    from_date: date,
    to_date: date,
) -> Tuple[StudyDay, ...]:
    """Move an open assignment to another date, merging with one already there."""
    days = tuple(days)
    source = find_day(days, from_date)
    target = find_day(days, to_date)
    if from_date == to_date:
        return days

    index = _target_index(source, exam_id, None)
    moving = source.exams[index]
    if moving.completed:
        raise PlannerError(f"Completed assignment for {exam_id} on {from_date} cannot be moved")

    source_exams = [a for i, a in enumerate(source.exams) if i != index]
    target_exams: List[StudyDayExam] = list(target.exams)
    for i, existing in enumerate(target_exams):
        if existing.exam_id == exam_id and existing.is_review == moving.is_review and not existing.completed:
            target_exams[i] = replace(
                existing,
                units=tuple(sorted(set(existing.units) | set(moving.units))),
                planned_hours=existing.planned_hours + moving.planned_hours,
            )
            break
    else:
        target_exams.append(moving)

    new_source = source.with_exams(source_exams)
    new_target = replace(target, exams=tuple(target_exams), custom_modified=True)
    logger.info("Moved %s assignment from %s to %s", exam_id, from_date, to_date)
    return tuple(
        new_source if d.day == from_date else new_target if d.day == to_date else d
        for d in days
    )


def log_session(
    sessions: Sequence[StudySession],
    exam_id: str,
    duration_minutes: int,
    units: Iterable[int] = (),
    notes: Optional[str] = None,
    started_at: Optional[datetime] = None,
) -> Tuple[Tuple[StudySession, ...], StudySession]:
    session = StudySession(
        session_id=uuid.uuid4().hex,
        exam_id=exam_id,
        started_at=started_at or datetime.now(),
        duration_minutes=duration_minutes,
        units=tuple(units),
        notes=notes,
    )
    logger.info("Logged %d minutes for exam %s", duration_minutes, exam_id)
    return tuple(sessions) + (session,), session
