from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from models import Exam, PlanMetrics, StudyDay, StudySession
from policy import DEFAULT_POLICY, PlannerPolicy
from unit_accounting import completed_units

SESSION_COLUMNS = ["session_id", "exam_id", "date", "duration_minutes", "hours", "unit_count", "notes"]


def compute_plan_metrics(
    exams: Sequence[Exam],
    days: Iterable[StudyDay],
    policy: PlannerPolicy = DEFAULT_POLICY,
) -> PlanMetrics:
    days = list(days)
    exam_map = {e.exam_id: e for e in exams}
    assigned: Dict[str, List[int]] = defaultdict(list)
    deadline_violations = 0
    over_budget_days = 0
    review_days = 0
    total_hours = 0.0

    for day in days:
        planned = sum(a.planned_hours for a in day.exams)
        total_hours += planned
        if day.available and day.exams and planned > day.available_hours + policy.balance_tolerance:
            over_budget_days += 1
        for assignment in day.exams:
            exam = exam_map.get(assignment.exam_id)
            if exam is None:
                continue
            if day.day >= exam.exam_date and not assignment.completed:
                deadline_violations += 1
            if assignment.is_review:
                review_days += 1
            assigned[exam.exam_id].extend(assignment.units)

    coverage: Dict[str, float] = {}
    unscheduled: Dict[str, int] = {}
    duplicates = 0
    for exam in exams:
        units = assigned.get(exam.exam_id, [])
        unique = set(units)
        duplicates += len(units) - len(unique)
        covered = len(unique & set(range(1, exam.total_units + 1)))
        coverage[exam.exam_id] = covered / exam.total_units if exam.total_units else 0.0
        missing = exam.total_units - covered
        if missing:
            unscheduled[exam.exam_id] = missing

    return PlanMetrics(
        unit_coverage_pct=coverage,
        unscheduled_units=unscheduled,
        deadline_violations=deadline_violations,
        duplicate_units=duplicates,
        over_budget_days=over_budget_days,
        total_hours_planned=round(total_hours, policy.hours_precision),
        review_days=review_days,
    )


def sessions_frame(sessions: Iterable[StudySession]) -> pd.DataFrame:
    rows = [
        {
            "session_id": s.session_id,
            "exam_id": s.exam_id,
            "date": pd.Timestamp(s.started_at.date()),
            "duration_minutes": s.duration_minutes,
            "hours": s.duration_minutes / 60,
            "unit_count": len(s.units),
            "notes": s.notes,
        }
        for s in sessions
    ]
    return pd.DataFrame(rows, columns=SESSION_COLUMNS)


def daily_hours_series(sessions: Iterable[StudySession], today: date, window_days: int = 14) -> pd.Series:
    """Hours studied per day over the trailing window ending today."""
    index = pd.date_range(end=pd.Timestamp(today), periods=window_days, freq="D")
    frame = sessions_frame(sessions)
    if frame.empty:
        return pd.Series(0.0, index=index, name="hours")
    per_day = frame.groupby("date")["hours"].sum()
    return per_day.reindex(index, fill_value=0.0).round(1).rename("hours")


def current_streak(days: Iterable[StudyDay], today: date) -> int:
    # Consecutive days with a completion, counting back from yesterday.
    completed_dates = {d.day for d in days if d.has_completed()}
    streak = 0
    check = today - timedelta(days=1)
    while check in completed_dates:
        streak += 1
        check -= timedelta(days=1)
    return streak


def exam_progress(exams: Iterable[Exam], days: Sequence[StudyDay], today: date) -> List[Dict[str, Any]]:
    rows = []
    for exam in exams:
        if exam.exam_date < today:
            continue
        done = len(completed_units(exam.exam_id, days))
        progress = round(done / exam.total_units * 100) if exam.total_units else 0
        start = exam.study_start_date or today
        window = (exam.exam_date - start).days
        elapsed = max(0, (today - start).days)
        expected = round(elapsed / window * 100) if window > 0 else 0
        rows.append(
            {
                "exam_id": exam.exam_id,
                "name": exam.name,
                "progress": progress,
                "days_left": (exam.exam_date - today).days,
                "at_risk": progress < expected - 10,
            }
        )
    return sorted(rows, key=lambda r: r["days_left"])


def study_statistics(
    exams: Sequence[Exam],
    days: Sequence[StudyDay],
    sessions: Sequence[StudySession],
    today: Optional[date] = None,
) -> Dict[str, Any]:
    today = today or date.today()
    session_df = sessions_frame(sessions)
    total_hours = float(session_df["hours"].sum()) if not session_df.empty else 0.0
    completed_days = {d.day for d in days if d.has_completed()}

    upcoming = sorted((e for e in exams if e.exam_date > today), key=lambda e: e.exam_date)
    completed_total = sum(len(completed_units(e.exam_id, days)) for e in exams)
    units_total = sum(e.total_units for e in exams)

    daily = daily_hours_series(sessions, today)
    return {
        "total_hours": round(total_hours, 1),
        "sessions_count": len(session_df),
        "upcoming_exams_count": len(upcoming),
        "days_to_next_exam": (upcoming[0].exam_date - today).days if upcoming else 0,
        "completed_days_count": len(completed_days),
        "current_streak": current_streak(days, today),
        "avg_hours_per_day": round(total_hours / len(completed_days), 1) if completed_days else 0.0,
        "completed_units": completed_total,
        "overall_progress": round(completed_total / units_total * 100) if units_total else 0,
        "daily_hours": [
            {"date": ts.date().isoformat(), "hours": float(h)} for ts, h in daily.items()
        ],
        "exam_progress": exam_progress(exams, days, today),
    }
