from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta

from distribution import distribute_units, split_review_days, units_per_day
from models import StudyDay, StudyDayExam

TODAY = date(2026, 1, 5)


def _days(count: int, hours: float = 4.0):
    return [StudyDay(day=TODAY + timedelta(days=i), available_hours=hours) for i in range(count)]


def test_review_window_takes_trailing_days() -> None:
    days = _days(20)
    study, review = split_review_days(days, 3)
    assert study == days[:17]
    assert review == days[17:]


def test_review_window_gives_back_earlier_half_when_it_swallows_everything() -> None:
    days = _days(4)
    study, review = split_review_days(days, 5)
    assert study == days[:2]
    assert review == days[2:]

    one = _days(1)
    study, review = split_review_days(one, 3)
    assert study == one
    assert review == one

    assert split_review_days(days, 0) == (days, [])


def test_units_per_day_has_floor_of_one() -> None:
    assert units_per_day(100, 17) == 6
    assert units_per_day(1, 5) == 1
    assert units_per_day(10, 0) == 0


def test_hour_budget_caps_units_and_leftovers_are_reported() -> None:
    result = distribute_units("math", _days(20), 100, 1, 100, 1.0, 3)

    study = [a for _, a in result.assignments if not a.is_review]
    review = [(d, a) for d, a in result.assignments if a.is_review]
    assert len(study) == 17
    assert study[0].units == (1, 2, 3, 4)
    assert study[-1].units == (65, 66, 67, 68)
    assert all(a.planned_hours == 4.0 for a in study)
    assert [d for d, _ in review] == [TODAY + timedelta(days=i) for i in (17, 18, 19)]
    assert all(a.units == () and a.planned_hours == 1.0 for _, a in review)
    assert result.next_unit == 69
    assert result.unscheduled == 32


def test_units_spread_evenly_when_hours_allow() -> None:
    result = distribute_units("math", _days(6, hours=8.0), 12, 1, 12, 1.0, 1)

    study = [a for _, a in result.assignments if not a.is_review]
    assert [a.units for a in study] == [(1, 2, 3), (4, 5, 6), (7, 8, 9), (10, 11, 12)]
    assert result.unscheduled == 0


def test_modified_day_gets_capacity_boost() -> None:
    days = [replace(_days(1, hours=2.0)[0], custom_modified=True)]

    result = distribute_units("math", days, 10, 1, 10, 1.0, 0)

    (_, assignment), = result.assignments
    assert assignment.units == (1, 2, 3)
    assert assignment.planned_hours == 3.0


def test_page_mode_and_minimum_session_length() -> None:
    pages = distribute_units("lit", _days(1), 200, 1, 200, 1 / 20, 0)
    (_, assignment), = pages.assignments
    assert len(assignment.units) == 80
    assert abs(assignment.planned_hours - 4.0) < 1e-9

    short = distribute_units("lit", _days(1), 1, 1, 1, 0.25, 0)
    (_, assignment), = short.assignments
    assert assignment.units == (1,)
    assert assignment.planned_hours == 0.5


def test_cursor_never_runs_past_total_units() -> None:
    result = distribute_units("math", _days(3), 5, 9, 10, 1.0, 0)

    assigned = [u for _, a in result.assignments for u in a.units]
    assert assigned == [9, 10]
    assert result.unscheduled == 3


def test_days_with_completed_work_for_the_exam_are_left_alone() -> None:
    days = _days(3)
    done = StudyDayExam(exam_id="math", units=(1,), completed=True, actual_hours=1.0)
    days[0] = replace(days[0], exams=(done,))

    result = distribute_units("math", days, 4, 2, 5, 1.0, 0)

    assert [d for d, _ in result.assignments] == [days[1].day, days[2].day]
    assert [a.units for _, a in result.assignments] == [(2, 3), (4, 5)]
