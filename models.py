from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, Optional, Tuple

PRIORITY_LOW = "low"
PRIORITY_MEDIUM = "medium"
PRIORITY_HIGH = "high"
PRIORITY_RANK = {PRIORITY_HIGH: 0, PRIORITY_MEDIUM: 1, PRIORITY_LOW: 2}

MODE_DISCARD_ALL = "discard_all"
MODE_KEEP_COMPLETED = "keep_completed_only"
REGENERATION_MODES = (MODE_DISCARD_ALL, MODE_KEEP_COMPLETED)

EXAM_COLORS = [
    "#9b87f5",
    "#7E69AB",
    "#3498db",
    "#2ecc71",
    "#e74c3c",
    "#f39c12",
    "#1abc9c",
    "#9b59b6",
]


class PlannerError(Exception):
    """Base error for caller mistakes outside the allocation engine."""


class UnknownExamError(PlannerError):
    pass


class UnknownDayError(PlannerError):
    pass


class StorageError(PlannerError):
    pass


@dataclass(frozen=True)
class Exam:
    exam_id: str
    name: str
    exam_date: date
    chapters: int
    time_per_unit: float  # hours per chapter, or pages per hour when use_pages
    pages: Optional[int] = None
    use_pages: bool = False
    initial_level: int = 3
    priority: str = PRIORITY_MEDIUM
    study_start_date: Optional[date] = None
    custom_review_days: Optional[int] = None
    color: str = EXAM_COLORS[0]

    @property
    def total_units(self) -> int:
        if self.use_pages:
            return self.pages or 0
        return self.chapters

    @property
    def hours_per_unit(self) -> float:
        if self.use_pages:
            return 1.0 / self.time_per_unit
        return self.time_per_unit

    def review_days(self, default_review_days: int) -> int:
        if self.custom_review_days is not None:
            return self.custom_review_days
        return default_review_days


@dataclass(frozen=True)
class StudyDayExam:
    exam_id: str
    units: Tuple[int, ...] = ()
    planned_hours: float = 0.0
    actual_hours: float = 0.0
    completed: bool = False
    is_review: bool = False


@dataclass(frozen=True)
class StudyDay:
    day: date
    available: bool = True
    available_hours: float = 4.0
    exams: Tuple[StudyDayExam, ...] = ()
    custom_modified: bool = False

    def has_assignment(self, exam_id: str) -> bool:
        return any(a.exam_id == exam_id for a in self.exams)

    def has_completed(self, exam_id: Optional[str] = None) -> bool:
        return any(a.completed and (exam_id is None or a.exam_id == exam_id) for a in self.exams)

    def with_exams(self, exams) -> "StudyDay":
        return replace(self, exams=tuple(exams))


@dataclass(frozen=True)
class StudySession:
    session_id: str
    exam_id: str
    started_at: datetime
    duration_minutes: int
    units: Tuple[int, ...] = ()
    notes: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    default_daily_hours: float = 4.0
    review_days: int = 3
    pomodoro_work: int = 25  # timer only
    pomodoro_break: int = 5  # timer only
    notifications: bool = True
    dark_mode: bool = False


@dataclass(frozen=True)
class PlanResult:
    days: Tuple[StudyDay, ...]
    nothing_to_plan: bool = False
    notes: Tuple[str, ...] = ()
    unscheduled_units: Dict[str, int] = field(default_factory=dict)
    recalculated_exams: Tuple[str, ...] = ()


@dataclass
class PlanMetrics:
    unit_coverage_pct: Dict[str, float]
    unscheduled_units: Dict[str, int]
    deadline_violations: int
    duplicate_units: int
    over_budget_days: int
    total_hours_planned: float
    review_days: int
