from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta

from day_selection import (
    compress_small_far_exam,
    estimate_days_needed,
    order_days,
    prune_days,
    select_candidate_days,
)
from models import Exam, StudyDay, StudyDayExam

TODAY = date(2026, 1, 5)


def _days(count: int, start: date = TODAY, hours: float = 4.0):
    return [StudyDay(day=start + timedelta(days=i), available_hours=hours) for i in range(count)]


def _exam(days_out: int, chapters: int = 10, **kwargs) -> Exam:
    return Exam(
        exam_id="hist",
        name="History",
        exam_date=TODAY + timedelta(days=days_out),
        chapters=chapters,
        time_per_unit=1.0,
        **kwargs,
    )


def test_selection_respects_exam_date_start_date_availability_and_pivot() -> None:
    days = _days(12, start=TODAY - timedelta(days=1))
    days[3] = replace(days[3], available=False)
    days[5] = replace(days[5], exams=(StudyDayExam(exam_id="hist", units=(1,)),))
    exam = _exam(8, study_start_date=TODAY + timedelta(days=1))

    selected = select_candidate_days(exam, days, TODAY)
    assert [d.day for d in selected] == [
        TODAY + timedelta(days=i) for i in (1, 3, 5, 6, 7)
    ]

    after_pivot = select_candidate_days(exam, days, TODAY, after=TODAY + timedelta(days=5), skip_assigned=False)
    assert [d.day for d in after_pivot] == [TODAY + timedelta(days=i) for i in (6, 7)]


def test_demand_estimate_applies_efficiency_discount() -> None:
    assert estimate_days_needed(100, 1.0, 4.0) == 32
    # 200 pages at 20 pages/hour is 10 hours of work.
    assert estimate_days_needed(200, 1 / 20, 4.0) == 4


def test_no_pruning_without_large_surplus() -> None:
    days = _days(20)
    pruned = prune_days(days, 100, 1.0, 20, 4.0)
    assert pruned == days


def test_small_far_exam_skips_full_surplus_share() -> None:
    days = _days(60)

    pruned = prune_days(days, 10, 1.0, 60, 4.0)

    # needed = 4, skip floor((60 - 4) * 0.7) = 39
    assert len(pruned) == 21
    assert pruned[0].day == TODAY + timedelta(days=39)


def test_near_or_large_exam_skips_only_part_of_surplus() -> None:
    days = _days(60)

    pruned = prune_days(days, 10, 1.0, 25, 4.0)

    # floor(39 * 0.4) = 15
    assert len(pruned) == 45
    assert pruned[0].day == TODAY + timedelta(days=15)


def test_modified_days_survive_pruning_and_come_first() -> None:
    days = _days(60)
    days[2] = replace(days[2], custom_modified=True, available_hours=6.0)

    pruned = prune_days(days, 10, 1.0, 60, 4.0)

    assert pruned[0].day == TODAY + timedelta(days=2)
    assert [d.day for d in pruned[1:]] == sorted(d.day for d in pruned[1:])
    assert pruned[1].day > TODAY + timedelta(days=30)


def test_order_days_puts_modified_days_first() -> None:
    days = _days(3)
    days[2] = replace(days[2], custom_modified=True)
    assert [d.day for d in order_days(days)] == [days[2].day, days[0].day, days[1].day]


def test_compression_for_small_far_exam_keeps_enough_days() -> None:
    days = _days(30)

    compressed = compress_small_far_exam(days, 5, 1.0, 45, 4.0, review_days=3)
    assert len(compressed) == 12
    assert compressed[0].day == TODAY + timedelta(days=18)

    assert compress_small_far_exam(days[:15], 5, 1.0, 45, 4.0, review_days=3) == days[:15]
    assert compress_small_far_exam(days, 40, 1.0, 45, 4.0, review_days=3) == days
    assert compress_small_far_exam(days, 5, 1.0, 20, 4.0, review_days=3) == days
