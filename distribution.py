from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import List, Sequence, Tuple

from models import StudyDay, StudyDayExam
from policy import DEFAULT_POLICY, PlannerPolicy

logger = logging.getLogger(__name__)

_EPSILON = 1e-9


@dataclass(frozen=True)
class DistributionResult:
    assignments: Tuple[Tuple[date, StudyDayExam], ...]
    next_unit: int
    unscheduled: int


def split_review_days(
    days: Sequence[StudyDay], review_count: int
) -> Tuple[List[StudyDay], List[StudyDay]]:
    """Split ordered days into study days and the trailing review days.

    When the review window swallows every day, the earlier half of it is
    given back to study. A single remaining day serves as both.
    """
    review_start = max(0, len(days) - review_count)
    study = list(days[:review_start])
    review = list(days[review_start:])
    if not study and review:
        convert = math.ceil(len(review) / 2)
        study = review[:convert]
        review = review[convert:] or review[:convert]
    return study, review


def units_per_day(remaining_units: int, study_day_count: int) -> int:
    if study_day_count <= 0:
        return 0
    return max(1, math.ceil(remaining_units / study_day_count))


def distribute_units(
    exam_id: str,
    days: Sequence[StudyDay],
    remaining_units: int,
    next_unit: int,
    total_units: int,
    hours_per_unit: float,
    review_count: int,
    policy: PlannerPolicy = DEFAULT_POLICY,
) -> DistributionResult:
    """Walk study days handing out contiguous unit ranges, then mark review days.

    Units that do not fit into the days' hour budgets are left unscheduled;
    they are reported back, not carried anywhere.
    """
    days = [d for d in days if not d.has_completed(exam_id)]
    if remaining_units <= 0:
        # Nothing left to study; the trailing days are all review.
        study_days, review_days = [], days[-review_count:] if review_count > 0 else []
    else:
        study_days, review_days = split_review_days(days, review_count)
    per_day = units_per_day(remaining_units, len(study_days))

    assignments: List[Tuple[date, StudyDayExam]] = []
    remaining = remaining_units
    cursor = next_unit
    for day in study_days:
        if remaining <= 0 or cursor > total_units:
            break
        multiplier = policy.modified_day_multiplier if day.custom_modified else 1.0
        fits = math.floor(day.available_hours / hours_per_unit * multiplier + _EPSILON)
        units_today = min(
            math.ceil(per_day * multiplier),
            remaining,
            fits,
            total_units - cursor + 1,
        )
        assignments.append(
            (
                day.day,
                StudyDayExam(
                    exam_id=exam_id,
                    units=tuple(range(cursor, cursor + units_today)),
                    planned_hours=max(policy.min_session_hours, units_today * hours_per_unit),
                ),
            )
        )
        cursor += units_today
        remaining -= units_today

    for day in review_days:
        assignments.append(
            (
                day.day,
                StudyDayExam(exam_id=exam_id, planned_hours=policy.review_hours, is_review=True),
            )
        )

    if remaining > 0:
        logger.warning(
            "Exam %s: %d units did not fit into the available hours and were left unscheduled",
            exam_id, remaining,
        )
    return DistributionResult(assignments=tuple(assignments), next_unit=cursor, unscheduled=max(remaining, 0))
