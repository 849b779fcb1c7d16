from __future__ import annotations

import json
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

import main
from models import Exam, Settings, StorageError, StudyDay, StudyDayExam, StudySession
from plan_store import PlanStore

TODAY = date(2026, 4, 6)


def test_store_round_trips_all_records(tmp_path: Path) -> None:
    store = PlanStore(tmp_path / "data")
    exam = Exam(
        exam_id="chem", name="Chemistry", exam_date=TODAY + timedelta(days=9),
        chapters=6, time_per_unit=1.5, study_start_date=TODAY, custom_review_days=1,
    )
    day = StudyDay(
        day=TODAY, available_hours=3.0, custom_modified=True,
        exams=(StudyDayExam(exam_id="chem", units=(1, 2), planned_hours=3.0, actual_hours=2.5, completed=True),),
    )
    session = StudySession(session_id="s", exam_id="chem", started_at=datetime(2026, 4, 6, 18, 30), duration_minutes=50, units=(1,))
    settings = Settings(default_daily_hours=5.0, review_days=2)

    store.save_exams([exam])
    store.save_days([day])
    store.save_sessions([session])
    store.save_settings(settings)

    assert store.load_exams() == (exam,)
    assert store.load_days() == (day,)
    assert store.load_sessions() == (session,)
    assert store.load_settings() == settings
    assert not list((tmp_path / "data").glob("*.tmp"))


def test_missing_store_yields_defaults_and_bad_json_raises(tmp_path: Path) -> None:
    store = PlanStore(tmp_path)
    assert store.load_exams() == ()
    assert store.load_settings() == Settings()

    (tmp_path / "studyDays.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        store.load_days()


def _cli(data_dir: Path, *args: str) -> int:
    return main.main(["--data-dir", str(data_dir), "--today", TODAY.isoformat(), "--log-level", "WARNING", *args])


def test_cli_generate_complete_and_report(tmp_path: Path, capsys) -> None:
    exam_json = json.dumps({
        "exam_id": "hist",
        "name": "History",
        "exam_date": (TODAY + timedelta(days=20)).isoformat(),
        "chapters": 100,
        "time_per_unit": 1.0,
    })
    assert _cli(tmp_path, "add-exam", exam_json) == 0
    assert capsys.readouterr().out.strip() == "hist"

    assert _cli(tmp_path, "generate") == 0
    days = PlanStore(tmp_path).load_days()
    assert days[0].exams[0].units == (1, 2, 3, 4)

    assert _cli(tmp_path, "complete", TODAY.isoformat(), "hist", "--hours", "5", "--units", "1,2,3,4,5,6") == 0
    days = PlanStore(tmp_path).load_days()
    assert days[0].exams[0].completed is True
    assert days[1].exams[0].units == (7, 8, 9, 10)

    assert _cli(tmp_path, "generate", "--keep-completed") == 0
    days = PlanStore(tmp_path).load_days()
    assert days[0].exams[0].units == (1, 2, 3, 4, 5, 6)
    assert days[0].exams[0].actual_hours == 5.0

    assert _cli(tmp_path, "log-session", "hist", "90") == 0
    assert _cli(tmp_path, "stats") == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["completed_units"] == 6
    assert stats["sessions_count"] == 1

    assert _cli(tmp_path, "show", "--days", "2") == 0
    shown = capsys.readouterr().out
    assert "History: units 1-6" in shown
    assert "History: units 7-10" in shown


def test_cli_reports_errors_with_exit_status(tmp_path: Path) -> None:
    assert _cli(tmp_path, "generate") == 0
    assert _cli(tmp_path, "add-exam", json.dumps({"name": "Bad", "exam_date": "2026-05-01", "chapters": 0, "time_per_unit": 1})) == 1
    assert _cli(tmp_path, "delete-exam", "missing") == 1
    assert _cli(tmp_path, "hours", "2030-01-01", "3") == 1


def test_cli_update_exam_reports_disconnected_plan(tmp_path: Path, capsys) -> None:
    exam = {
        "exam_id": "bio",
        "name": "Biology",
        "exam_date": (TODAY + timedelta(days=15)).isoformat(),
        "chapters": 8,
        "time_per_unit": 1.0,
    }
    assert _cli(tmp_path, "add-exam", json.dumps(exam)) == 0
    capsys.readouterr()

    assert _cli(tmp_path, "update-exam", json.dumps({**exam, "name": "Biology I"})) == 0
    assert capsys.readouterr().out == ""
    assert PlanStore(tmp_path).load_exams()[0].name == "Biology I"

    assert _cli(tmp_path, "update-exam", json.dumps({**exam, "chapters": 12})) == 0
    assert capsys.readouterr().out.strip() == "plan-disconnected"
    assert PlanStore(tmp_path).load_exams()[0].total_units == 12

    assert _cli(tmp_path, "update-exam", json.dumps({**exam, "exam_id": "missing"})) == 1


def test_cli_rejects_out_of_range_units_and_bad_log_level(tmp_path: Path) -> None:
    exam = {
        "exam_id": "chem",
        "name": "Chemistry",
        "exam_date": (TODAY + timedelta(days=15)).isoformat(),
        "chapters": 10,
        "time_per_unit": 1.0,
    }
    assert _cli(tmp_path, "add-exam", json.dumps(exam)) == 0
    assert _cli(tmp_path, "generate") == 0
    first = next(d for d in PlanStore(tmp_path).load_days() if d.exams)

    assert _cli(tmp_path, "complete", first.day.isoformat(), "chem", "--units", "1,50") == 1
    assert not any(d.has_completed() for d in PlanStore(tmp_path).load_days())

    bad_level = main.main(["--data-dir", str(tmp_path), "--today", TODAY.isoformat(), "--log-level", "chatty", "show"])
    assert bad_level == 1
