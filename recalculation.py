from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple

from day_selection import compress_small_far_exam, prune_days, select_candidate_days
from distribution import DistributionResult, distribute_units
from models import Exam, Settings, StudyDay, StudyDayExam
from policy import DEFAULT_POLICY, PlannerPolicy
from unit_accounting import latest_completed_day, unit_progress

logger = logging.getLogger(__name__)


def _logged_completion(assignment: StudyDayExam) -> bool:
    return assignment.completed and assignment.actual_hours > 0


def newly_completed_exams(previous: Optional[StudyDay], edited: StudyDay) -> List[str]:
    """Exam ids whose assignment on ``edited`` just became a logged completion."""
    before: Set[str] = set()
    if previous is not None:
        before = {a.exam_id for a in previous.exams if _logged_completion(a)}
    found: List[str] = []
    for assignment in edited.exams:
        if _logged_completion(assignment) and assignment.exam_id not in before and assignment.exam_id not in found:
            found.append(assignment.exam_id)
    return found


def clear_forward_assignments(days: Iterable[StudyDay], exam_id: str, after: Optional[date]) -> Tuple[StudyDay, ...]:
    """Drop the exam's open assignments on days after the pivot."""
    cleared = []
    for day in days:
        if (after is None or day.day > after) and day.has_assignment(exam_id):
            kept = [a for a in day.exams if a.exam_id != exam_id or a.completed]
            if len(kept) != len(day.exams):
                day = day.with_exams(kept)
        cleared.append(day)
    return tuple(cleared)


def plan_remaining_units(
    exam: Exam,
    days: Iterable[StudyDay],
    settings: Settings,
    today: date,
    policy: PlannerPolicy = DEFAULT_POLICY,
    pivot: Optional[date] = None,
) -> DistributionResult:
    """Re-plan what is left of an exam on the days after its last completion.

    The cursor continues after the highest completed unit; nothing on or
    before the pivot is proposed.
    """
    days = tuple(days)
    progress = unit_progress(exam, days)
    if pivot is None:
        pivot = latest_completed_day(exam.exam_id, days)
    candidates = select_candidate_days(exam, days, today, after=pivot, skip_assigned=False)
    if not candidates:
        logger.warning("Exam %s has no available days left after %s", exam.exam_id, pivot)
        return DistributionResult(assignments=(), next_unit=progress.next_unit, unscheduled=progress.remaining)

    review_count = exam.review_days(settings.review_days)
    if progress.remaining <= 0:
        logger.info("Exam %s has no remaining units; keeping its review days", exam.exam_id)
        return distribute_units(
            exam.exam_id, candidates, 0, progress.next_unit, exam.total_units,
            exam.hours_per_unit, review_count, policy,
        )

    days_until = (exam.exam_date - today).days
    pruned = prune_days(
        candidates,
        progress.remaining,
        exam.hours_per_unit,
        days_until,
        settings.default_daily_hours,
        policy,
    )
    pruned = compress_small_far_exam(
        pruned,
        progress.remaining,
        exam.hours_per_unit,
        days_until,
        settings.default_daily_hours,
        review_count,
        policy,
    )
    logger.debug(
        "Recalculating exam %s: %d remaining units from unit %d over %d days",
        exam.exam_id, progress.remaining, progress.next_unit, len(pruned),
    )
    return distribute_units(
        exam.exam_id,
        pruned,
        progress.remaining,
        progress.next_unit,
        exam.total_units,
        exam.hours_per_unit,
        review_count,
        policy,
    )


def index_exams(exams: Iterable[Exam]) -> Dict[str, Exam]:
    return {exam.exam_id: exam for exam in exams}
