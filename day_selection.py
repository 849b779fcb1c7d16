from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable, List, Optional

from models import Exam, StudyDay
from policy import DEFAULT_POLICY, PlannerPolicy

logger = logging.getLogger(__name__)


def select_candidate_days(
    exam: Exam,
    days: Iterable[StudyDay],
    today: date,
    after: Optional[date] = None,
    skip_assigned: bool = True,
) -> List[StudyDay]:
    """Days on which study for ``exam`` may be scheduled, in date order.

    A day qualifies when it is available, not in the past, strictly before
    the exam, on or after the exam's study-start date and, if ``after`` is
    given, strictly after that pivot date.
    """
    start = today
    if exam.study_start_date and exam.study_start_date > today:
        start = exam.study_start_date

    selected = []
    for day in days:
        if not day.available:
            continue
        if day.day < start or day.day >= exam.exam_date:
            continue
        if after is not None and day.day <= after:
            continue
        if skip_assigned and day.has_assignment(exam.exam_id):
            continue
        selected.append(day)
    return sorted(selected, key=lambda d: d.day)


def estimate_days_needed(
    units: int,
    hours_per_unit: float,
    default_daily_hours: float,
    policy: PlannerPolicy = DEFAULT_POLICY,
) -> int:
    total_hours = units * hours_per_unit
    return math.ceil(total_hours / (default_daily_hours * policy.study_efficiency))


def order_days(days: Iterable[StudyDay]) -> List[StudyDay]:
    # Manually edited days first, then chronological.
    return sorted(days, key=lambda d: (not d.custom_modified, d.day))


def prune_days(
    days: List[StudyDay],
    units: int,
    hours_per_unit: float,
    days_until_exam: int,
    default_daily_hours: float,
    policy: PlannerPolicy = DEFAULT_POLICY,
) -> List[StudyDay]:
    """Drop surplus early days when far more days exist than the workload needs.

    Manually modified days are never dropped.
    """
    needed = estimate_days_needed(units, hours_per_unit, default_daily_hours, policy)
    if len(days) <= needed * policy.surplus_threshold:
        return order_days(days)

    days_to_skip = math.floor((len(days) - needed) * policy.surplus_skip_ratio)
    small = units < policy.small_exam_units
    far = days_until_exam > policy.far_exam_days
    if not (small and far):
        days_to_skip = math.floor(days_to_skip * policy.near_exam_skip_ratio)

    modified = [d for d in days if d.custom_modified]
    regular = sorted((d for d in days if not d.custom_modified), key=lambda d: d.day)
    logger.debug(
        "Pruning %d of %d candidate days (needed=%d, small=%s, far=%s)",
        days_to_skip, len(days), needed, small, far,
    )
    return order_days(modified + regular[days_to_skip:])


def compress_small_far_exam(
    days: List[StudyDay],
    units: int,
    hours_per_unit: float,
    days_until_exam: int,
    default_daily_hours: float,
    review_days: int,
    policy: PlannerPolicy = DEFAULT_POLICY,
) -> List[StudyDay]:
    """Push a small, distant exam's remaining work later in the window."""
    if units >= policy.small_exam_units or days_until_exam <= policy.far_exam_days:
        return days
    if len(days) <= policy.compression_min_days:
        return days

    keep_at_least = estimate_days_needed(units, hours_per_unit, default_daily_hours, policy) + review_days
    days_to_skip = min(
        math.floor(len(days) * policy.small_far_skip_ratio),
        max(len(days) - keep_at_least, 0),
    )
    modified = [d for d in days if d.custom_modified]
    regular = sorted((d for d in days if not d.custom_modified), key=lambda d: d.day)
    return order_days(modified + regular[days_to_skip:])
