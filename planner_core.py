from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from availability import build_study_calendar
from day_selection import prune_days, select_candidate_days
from distribution import DistributionResult, distribute_units
from load_balancer import balance_days
from models import (
    MODE_DISCARD_ALL,
    MODE_KEEP_COMPLETED,
    PRIORITY_RANK,
    REGENERATION_MODES,
    Exam,
    PlanResult,
    Settings,
    StudyDay,
    StudyDayExam,
)
from policy import DEFAULT_POLICY, PlannerPolicy
from recalculation import clear_forward_assignments, index_exams, newly_completed_exams, plan_remaining_units
from unit_accounting import latest_completed_day

logger = logging.getLogger(__name__)

MS_PER_DAY = 86_400_000
PRIORITY_MULTIPLIER = {"high": 3, "medium": 2, "low": 1}


def exam_priority_score(exam: Exam) -> float:
    # Lower means "study sooner"; expressed in days.
    multiplier = PRIORITY_MULTIPLIER.get(exam.priority, 1)
    return exam.exam_date.toordinal() - multiplier - exam.initial_level * 100 / MS_PER_DAY


def order_exams(exams: Iterable[Exam]) -> List[Exam]:
    return sorted(
        exams,
        key=lambda e: (
            PRIORITY_RANK.get(e.priority, PRIORITY_RANK["medium"]),
            e.exam_date,
            exam_priority_score(e),
            e.name,
            e.exam_id,
        ),
    )


def merge_assignments(
    days: Iterable[StudyDay],
    proposals: Iterable[Tuple[date, StudyDayExam]],
) -> Tuple[StudyDay, ...]:
    """Fold proposed assignments into the days, returning new days.

    A proposal replaces the exam's open assignments on that day; a day
    holding a completed assignment for the exam keeps it and ignores the
    proposal.
    """
    incoming: Dict[date, List[StudyDayExam]] = defaultdict(list)
    for day_date, assignment in proposals:
        incoming[day_date].append(assignment)

    merged = []
    for day in days:
        new = incoming.pop(day.day, None)
        if not new:
            merged.append(day)
            continue
        touched = {a.exam_id for a in new}
        kept: List[StudyDayExam] = []
        blocked = set()
        for assignment in day.exams:
            if assignment.exam_id not in touched:
                kept.append(assignment)
            elif assignment.completed:
                kept.append(assignment)
                blocked.add(assignment.exam_id)
        kept.extend(a for a in new if a.exam_id not in blocked)
        merged.append(day.with_exams(kept))

    if incoming:
        logger.warning("Dropped assignments for %d dates outside the calendar", len(incoming))
    return tuple(merged)


def plan_exam(
    exam: Exam,
    calendar: Sequence[StudyDay],
    settings: Settings,
    today: date,
    policy: PlannerPolicy = DEFAULT_POLICY,
) -> DistributionResult:
    """Select, prune and distribute one exam's full workload."""
    candidates = select_candidate_days(exam, calendar, today)
    units = exam.total_units
    if not candidates:
        logger.warning("Exam %s has no available days before %s", exam.exam_id, exam.exam_date)
        return DistributionResult(assignments=(), next_unit=1, unscheduled=units)

    days_until = (exam.exam_date - today).days
    pruned = prune_days(
        candidates,
        units,
        exam.hours_per_unit,
        days_until,
        settings.default_daily_hours,
        policy,
    )
    logger.debug("Exam %s: %d candidate days, %d after pruning", exam.exam_id, len(candidates), len(pruned))
    return distribute_units(
        exam.exam_id,
        pruned,
        units,
        1,
        units,
        exam.hours_per_unit,
        exam.review_days(settings.review_days),
        policy,
    )


def generate_full_plan(
    exams: Sequence[Exam],
    existing_days: Iterable[StudyDay],
    settings: Settings,
    mode: str = MODE_DISCARD_ALL,
    today: Optional[date] = None,
    policy: PlannerPolicy = DEFAULT_POLICY,
) -> PlanResult:
    """Rebuild the whole day-by-day plan.

    In keep-completed mode, days holding completed assignments survive with
    only those assignments, and exams with completions continue from their
    progress instead of starting over.
    """
    if mode not in REGENERATION_MODES:
        raise ValueError(f"Unknown regeneration mode: {mode}")
    today = today or date.today()
    existing = tuple(sorted(existing_days, key=lambda d: d.day))

    if not exams:
        logger.info("No exams registered; nothing to plan")
        return PlanResult(days=existing, nothing_to_plan=True, notes=("No exams to plan.",))

    preserved: Tuple[StudyDay, ...] = ()
    if mode == MODE_KEEP_COMPLETED:
        preserved = tuple(
            day.with_exams(a for a in day.exams if a.completed)
            for day in existing
            if day.has_completed()
        )
    exams_in_progress = {a.exam_id for day in preserved for a in day.exams}

    calendar = build_study_calendar(exams, existing, settings.default_daily_hours, today, preserved)

    notes: List[str] = []
    unscheduled: Dict[str, int] = {}
    proposals: List[Tuple[date, StudyDayExam]] = []
    for exam in order_exams(exams):
        if exam.exam_date <= today:
            notes.append(f"Exam {exam.name} on {exam.exam_date} is not in the future; skipped.")
            continue
        if exam.exam_id in exams_in_progress:
            result = plan_remaining_units(exam, calendar, settings, today, policy)
        else:
            result = plan_exam(exam, calendar, settings, today, policy)
        proposals.extend(result.assignments)
        if result.unscheduled:
            unscheduled[exam.exam_id] = result.unscheduled
            notes.append(f"{result.unscheduled} units of {exam.name} did not fit before the exam.")

    days = balance_days(merge_assignments(calendar, proposals), policy)
    logger.info("Generated plan for %d exams over %d days (%s)", len(exams), len(days), mode)
    return PlanResult(days=days, notes=tuple(notes), unscheduled_units=unscheduled)


def replace_day(days: Iterable[StudyDay], edited: StudyDay) -> Tuple[Tuple[StudyDay, ...], Optional[StudyDay]]:
    previous = None
    updated = []
    for day in days:
        if day.day == edited.day:
            previous = day
            updated.append(edited)
        else:
            updated.append(day)
    if previous is None:
        updated.append(edited)
    return tuple(sorted(updated, key=lambda d: d.day)), previous


def apply_day_edit(
    day: StudyDay,
    all_days: Iterable[StudyDay],
    exams: Sequence[Exam],
    settings: Settings,
    today: Optional[date] = None,
    policy: PlannerPolicy = DEFAULT_POLICY,
) -> PlanResult:
    """Commit one edited day and re-plan the exams it just completed.

    Only days after each exam's latest completion are rewritten, and only
    for that exam.
    """
    today = today or date.today()
    days, previous = replace_day(all_days, day)
    exam_ids = newly_completed_exams(previous, day)
    if not exam_ids:
        return PlanResult(days=days)

    by_id = index_exams(exams)
    notes: List[str] = []
    unscheduled: Dict[str, int] = {}
    recalculated: List[str] = []
    for exam_id in exam_ids:
        exam = by_id.get(exam_id)
        if exam is None:
            logger.warning("Completed assignment references unknown exam %s", exam_id)
            continue
        if exam.exam_date <= today:
            continue
        pivot = latest_completed_day(exam_id, days)
        days = clear_forward_assignments(days, exam_id, pivot)
        result = plan_remaining_units(exam, days, settings, today, policy, pivot=pivot)
        days = merge_assignments(days, result.assignments)
        recalculated.append(exam_id)
        if result.unscheduled:
            unscheduled[exam_id] = result.unscheduled
            notes.append(f"{result.unscheduled} units of {exam.name} did not fit before the exam.")

    logger.info("Recalculated %d exams after edit of %s", len(recalculated), day.day)
    return PlanResult(
        days=days,
        notes=tuple(notes),
        unscheduled_units=unscheduled,
        recalculated_exams=tuple(recalculated),
    )
