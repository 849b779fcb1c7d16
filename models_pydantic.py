"""Pydantic models validating planner data at the entry and storage boundary."""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from models import EXAM_COLORS, Exam, Settings, StudyDay, StudyDayExam, StudySession


class ExamPydantic(BaseModel):
    """An exam as entered by the user."""

    exam_id: str = Field(default="", description="Stable identifier; assigned on creation when empty")
    name: str = Field(..., description="Display name of the exam", min_length=1)
    exam_date: date = Field(..., description="Day of the exam; no study is planned on or after it")
    study_start_date: Optional[date] = Field(
        default=None, description="Earliest day study may be scheduled"
    )
    chapters: int = Field(default=0, description="Number of chapters (chapter mode)", ge=0)
    pages: Optional[int] = Field(default=None, description="Number of pages (page mode)", ge=1)
    use_pages: bool = Field(default=False, description="Measure the exam in pages instead of chapters")
    time_per_unit: float = Field(
        ...,
        description="Hours per chapter, or pages per hour in page mode",
        gt=0,
    )
    initial_level: int = Field(default=3, description="Initial knowledge (1=none, 5=solid)", ge=1, le=5)
    priority: Literal["low", "medium", "high"] = Field(default="medium")
    custom_review_days: Optional[int] = Field(
        default=None, description="Overrides the default number of review days", ge=0
    )
    color: str = Field(default=EXAM_COLORS[0], description="Display colour")

    @model_validator(mode="after")
    def check_size(self) -> "ExamPydantic":
        if self.use_pages and not self.pages:
            raise ValueError("pages must be at least 1 when use_pages is set")
        if not self.use_pages and self.chapters < 1:
            raise ValueError("chapters must be at least 1")
        if self.study_start_date and self.study_start_date >= self.exam_date:
            raise ValueError("study_start_date must be before exam_date")
        return self

    def to_domain(self) -> Exam:
        return Exam(
            exam_id=self.exam_id,
            name=self.name,
            exam_date=self.exam_date,
            chapters=self.chapters,
            time_per_unit=self.time_per_unit,
            pages=self.pages,
            use_pages=self.use_pages,
            initial_level=self.initial_level,
            priority=self.priority,
            study_start_date=self.study_start_date,
            custom_review_days=self.custom_review_days,
            color=self.color,
        )

    @classmethod
    def from_domain(cls, exam: Exam) -> "ExamPydantic":
        return cls(
            exam_id=exam.exam_id,
            name=exam.name,
            exam_date=exam.exam_date,
            study_start_date=exam.study_start_date,
            chapters=exam.chapters,
            pages=exam.pages,
            use_pages=exam.use_pages,
            time_per_unit=exam.time_per_unit,
            initial_level=exam.initial_level,
            priority=exam.priority,
            custom_review_days=exam.custom_review_days,
            color=exam.color,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "exam_id": "calc-1",
                "name": "Calculus I",
                "exam_date": "2026-12-15",
                "chapters": 12,
                "time_per_unit": 2.0,
                "initial_level": 2,
                "priority": "high",
                "custom_review_days": 2,
            }
        }


class StudyDayExamPydantic(BaseModel):
    exam_id: str
    units: List[int] = Field(default_factory=list)
    planned_hours: float = Field(default=0.0, ge=0)
    actual_hours: float = Field(default=0.0, ge=0)
    completed: bool = False
    is_review: bool = False

    @field_validator("units")
    @classmethod
    def validate_units(cls, units: List[int]) -> List[int]:
        if any(u < 1 for u in units):
            raise ValueError(f"unit numbers start at 1, got: {units}")
        return units

    def to_domain(self) -> StudyDayExam:
        return StudyDayExam(
            exam_id=self.exam_id,
            units=tuple(self.units),
            planned_hours=self.planned_hours,
            actual_hours=self.actual_hours,
            completed=self.completed,
            is_review=self.is_review,
        )

    @classmethod
    def from_domain(cls, assignment: StudyDayExam) -> "StudyDayExamPydantic":
        return cls(
            exam_id=assignment.exam_id,
            units=list(assignment.units),
            planned_hours=assignment.planned_hours,
            actual_hours=assignment.actual_hours,
            completed=assignment.completed,
            is_review=assignment.is_review,
        )


class StudyDayPydantic(BaseModel):
    day: date
    available: bool = True
    available_hours: float = Field(default=4.0, ge=0, le=24)
    exams: List[StudyDayExamPydantic] = Field(default_factory=list)
    custom_modified: bool = False

    def to_domain(self) -> StudyDay:
        return StudyDay(
            day=self.day,
            available=self.available,
            available_hours=self.available_hours,
            exams=tuple(e.to_domain() for e in self.exams),
            custom_modified=self.custom_modified,
        )

    @classmethod
    def from_domain(cls, day: StudyDay) -> "StudyDayPydantic":
        return cls(
            day=day.day,
            available=day.available,
            available_hours=day.available_hours,
            exams=[StudyDayExamPydantic.from_domain(a) for a in day.exams],
            custom_modified=day.custom_modified,
        )


class StudySessionPydantic(BaseModel):
    session_id: str
    exam_id: str
    started_at: datetime
    duration_minutes: int = Field(..., gt=0)
    units: List[int] = Field(default_factory=list)
    notes: Optional[str] = None

    def to_domain(self) -> StudySession:
        return StudySession(
            session_id=self.session_id,
            exam_id=self.exam_id,
            started_at=self.started_at,
            duration_minutes=self.duration_minutes,
            units=tuple(self.units),
            notes=self.notes,
        )

    @classmethod
    def from_domain(cls, session: StudySession) -> "StudySessionPydantic":
        return cls(
            session_id=session.session_id,
            exam_id=session.exam_id,
            started_at=session.started_at,
            duration_minutes=session.duration_minutes,
            units=list(session.units),
            notes=session.notes,
        )


class SettingsPydantic(BaseModel):
    """User settings; only daily hours and review days reach the planner."""

    default_daily_hours: float = Field(default=4.0, gt=0, le=24)
    review_days: int = Field(default=3, ge=0)
    pomodoro_work: int = Field(default=25, gt=0)
    pomodoro_break: int = Field(default=5, ge=0)
    notifications: bool = True
    dark_mode: bool = False

    def to_domain(self) -> Settings:
        return Settings(**self.model_dump())

    @classmethod
    def from_domain(cls, settings: Settings) -> "SettingsPydantic":
        return cls(
            default_daily_hours=settings.default_daily_hours,
            review_days=settings.review_days,
            pomodoro_work=settings.pomodoro_work,
            pomodoro_break=settings.pomodoro_break,
            notifications=settings.notifications,
            dark_mode=settings.dark_mode,
        )
