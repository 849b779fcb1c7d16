from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, Sequence, Tuple

from models import Exam, StudyDay

logger = logging.getLogger(__name__)


def calendar_end(exams: Sequence[Exam]) -> date:
    # One trailing day past the furthest exam.
    return max(exam.exam_date for exam in exams) + timedelta(days=1)


def build_study_calendar(
    exams: Sequence[Exam],
    existing_days: Iterable[StudyDay],
    default_daily_hours: float,
    today: date,
    preserved_days: Iterable[StudyDay] = (),
) -> Tuple[StudyDay, ...]:
    """Materialize one StudyDay per date from today through the trailing day.

    Availability, hours and the manual-edit flag are carried forward from
    ``existing_days``; assignments start empty. Days in ``preserved_days``
    are kept as they are, including ones that fall before today, so that
    completed history survives a regeneration.
    """
    if not exams:
        return ()

    previous: Dict[date, StudyDay] = {d.day: d for d in existing_days}
    preserved: Dict[date, StudyDay] = {d.day: d for d in preserved_days}
    end_date = calendar_end(exams)

    calendar: Dict[date, StudyDay] = {d: day for d, day in preserved.items() if d < today}
    current = today
    while current <= end_date:
        if current in preserved:
            calendar[current] = preserved[current]
        else:
            prior = previous.get(current)
            calendar[current] = StudyDay(
                day=current,
                available=prior.available if prior else True,
                available_hours=prior.available_hours if prior else default_daily_hours,
                exams=(),
                custom_modified=prior.custom_modified if prior else False,
            )
        current += timedelta(days=1)

    logger.debug("Built calendar of %d days (%s to %s)", len(calendar), today, end_date)
    return tuple(calendar[d] for d in sorted(calendar))
