from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Tuple

from models import StudyDay, StudyDayExam
from policy import DEFAULT_POLICY, PlannerPolicy


def balance_day(day: StudyDay, policy: PlannerPolicy = DEFAULT_POLICY) -> StudyDay:
    """Stretch or squeeze a day's planned hours to match its budget.

    Slack is split evenly across assignments, over-commitment is scaled
    down proportionally. The rounding residue lands on the largest
    assignment so the day sums to its budget.
    """
    if not day.available or not day.exams:
        return day

    digits = policy.hours_precision
    total = sum(a.planned_hours for a in day.exams)
    budget = day.available_hours
    if abs(total - budget) < 10 ** -(digits + 2):
        return day

    if total < budget:
        extra = (budget - total) / len(day.exams)
        hours = [a.planned_hours + extra for a in day.exams]
    else:
        ratio = budget / total
        hours = [a.planned_hours * ratio for a in day.exams]

    rounded = [round(h, digits) for h in hours]
    residue = round(budget - sum(rounded), digits)
    largest = max(range(len(rounded)), key=lambda i: (rounded[i], i))
    rounded[largest] = max(round(rounded[largest] + residue, digits), 0.0)

    exams: List[StudyDayExam] = [
        replace(a, planned_hours=h) for a, h in zip(day.exams, rounded)
    ]
    return day.with_exams(exams)


def balance_days(days: Iterable[StudyDay], policy: PlannerPolicy = DEFAULT_POLICY) -> Tuple[StudyDay, ...]:
    return tuple(balance_day(day, policy) for day in days)
