from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from exam_registry import (
    add_exam,
    delete_exam,
    find_day,
    log_session,
    move_assignment,
    set_available_hours,
    set_completion,
    set_day_available,
    update_exam,
)
from metrics import compute_plan_metrics, study_statistics
from models import MODE_DISCARD_ALL, MODE_KEEP_COMPLETED, Exam, PlannerError, PlanResult, UnknownExamError
from models_pydantic import ExamPydantic
from plan_store import PlanStore
from planner_core import apply_day_edit, generate_full_plan
from policy import PlannerPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "data_dir": "planner_data",
    "today": None,
    "mode": MODE_DISCARD_ALL,
    "log_level": "INFO",
    "policy": {},
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Exam study planner")
    parser.add_argument("--config", type=str, help="Path to config JSON")
    parser.add_argument("--data-dir", dest="data_dir", type=str, help="Directory holding planner data")
    parser.add_argument("--today", type=str, help="Override today's date (YYYY-MM-DD)")
    parser.add_argument("--log-level", dest="log_level", type=str, help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Regenerate the full study plan")
    gen.add_argument("--keep-completed", dest="keep_completed", action="store_true",
                     help="Keep completed sessions and continue from them")

    add = sub.add_parser("add-exam", help="Register an exam from a JSON object")
    add.add_argument("exam_json", type=str, help="Exam JSON string or path to a JSON file")

    update = sub.add_parser("update-exam", help="Replace an exam's details from a JSON object")
    update.add_argument("exam_json", type=str, help="Exam JSON string (with exam_id) or path to a JSON file")

    delete = sub.add_parser("delete-exam", help="Delete an exam, its future plan and sessions")
    delete.add_argument("exam_id", type=str)

    complete = sub.add_parser("complete", help="Mark a day's assignment completed")
    complete.add_argument("date", type=str)
    complete.add_argument("exam_id", type=str)
    complete.add_argument("--hours", type=float, help="Actual hours studied")
    complete.add_argument("--units", type=str, help="Comma-separated units actually covered")

    uncomplete = sub.add_parser("uncomplete", help="Undo a completion, keeping its units")
    uncomplete.add_argument("date", type=str)
    uncomplete.add_argument("exam_id", type=str)

    hours = sub.add_parser("hours", help="Set a day's available hours")
    hours.add_argument("date", type=str)
    hours.add_argument("hours", type=float)

    avail = sub.add_parser("availability", help="Mark a day available or unavailable")
    avail.add_argument("date", type=str)
    avail.add_argument("state", choices=["on", "off"])

    move = sub.add_parser("move", help="Move an open assignment to another date")
    move.add_argument("exam_id", type=str)
    move.add_argument("from_date", type=str)
    move.add_argument("to_date", type=str)

    session = sub.add_parser("log-session", help="Record a finished study session")
    session.add_argument("exam_id", type=str)
    session.add_argument("minutes", type=int)
    session.add_argument("--units", type=str, help="Comma-separated units covered")
    session.add_argument("--notes", type=str)

    sub.add_parser("stats", help="Print study statistics")
    show = sub.add_parser("show", help="Print the plan")
    show.add_argument("--from", dest="from_date", type=str, help="First date to show")
    show.add_argument("--days", type=int, default=14, help="Number of days to show")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Dict[str, Any]:
    config = dict(DEFAULT_CONFIG)
    config["policy"] = {}

    load_dotenv()
    if os.getenv("STUDY_PLANNER_DATA_DIR"):
        config["data_dir"] = os.environ["STUDY_PLANNER_DATA_DIR"]
    if os.getenv("STUDY_PLANNER_LOG_LEVEL"):
        config["log_level"] = os.environ["STUDY_PLANNER_LOG_LEVEL"]

    if args.config:
        with open(args.config, "r", encoding="utf-8") as f:
            file_config = json.load(f)
            config.update(file_config)

    if args.data_dir:
        config["data_dir"] = args.data_dir
    if args.today:
        config["today"] = args.today
    if args.log_level:
        config["log_level"] = args.log_level
    if getattr(args, "keep_completed", False):
        config["mode"] = MODE_KEEP_COMPLETED
    return config


def resolve_log_level(name: Any) -> int:
    level = logging.getLevelName(str(name).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def parse_date(date_str: str) -> date:
    return datetime.strptime(date_str, "%Y-%m-%d").date()


def parse_units(raw: Optional[str]) -> Optional[List[int]]:
    if not raw:
        return None
    return [int(part) for part in raw.split(",") if part.strip()]


def read_exam(raw: str) -> Exam:
    if not raw.lstrip().startswith("{"):
        raw = Path(raw).read_text(encoding="utf-8")
    return ExamPydantic.model_validate_json(raw).to_domain()


def report(result: PlanResult) -> None:
    for note in result.notes:
        logger.warning(note)


def format_plan(result_days, exam_names: Dict[str, str], start: date, count: int) -> List[str]:
    lines = []
    shown = [d for d in result_days if d.day >= start][:count]
    for day in shown:
        status = f"{day.available_hours:g}h" if day.available else "unavailable"
        lines.append(f"{day.day.isoformat()} ({status}{', edited' if day.custom_modified else ''})")
        for a in day.exams:
            label = exam_names.get(a.exam_id, a.exam_id)
            if a.is_review:
                what = "review"
            elif a.units:
                what = f"units {a.units[0]}-{a.units[-1]}"
            else:
                what = "general study"
            done = f" done {a.actual_hours:g}h" if a.completed else ""
            lines.append(f"  {label}: {what}, {a.planned_hours:g}h{done}")
    return lines


def run(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    store = PlanStore(Path(config["data_dir"]))
    today = parse_date(config["today"]) if config.get("today") else date.today()
    policy = PlannerPolicy.from_mapping(config.get("policy"))

    exams = store.load_exams()
    days = store.load_days()
    settings = store.load_settings()

    if args.command == "generate":
        result = generate_full_plan(exams, days, settings, mode=config["mode"], today=today, policy=policy)
        report(result)
        if result.nothing_to_plan:
            logger.warning("Add some exams before generating a study plan")
            return 0
        store.save_days(result.days)
        metrics = compute_plan_metrics(exams, result.days, policy)
        logger.info("Planned %.1f hours; %d review assignments", metrics.total_hours_planned, metrics.review_days)
        return 0

    if args.command == "add-exam":
        exam = read_exam(args.exam_json)
        exams, exam = add_exam(exams, exam)
        store.save_exams(exams)
        print(exam.exam_id)
        return 0

    if args.command == "update-exam":
        exam = read_exam(args.exam_json)
        exams, disconnected = update_exam(exams, exam)
        store.save_exams(exams)
        if disconnected:
            logger.warning("Exam %s changed size or mode; run generate to rebuild its plan", exam.exam_id)
            print("plan-disconnected")
        return 0

    if args.command == "delete-exam":
        sessions = store.load_sessions()
        exams, days, sessions = delete_exam(args.exam_id, exams, days, sessions, today)
        store.save_exams(exams)
        store.save_days(days)
        store.save_sessions(sessions)
        return 0

    if args.command in ("complete", "uncomplete", "hours", "availability"):
        day = find_day(days, parse_date(args.date))
        if args.command == "complete":
            exam = next((e for e in exams if e.exam_id == args.exam_id), None)
            if exam is None:
                raise UnknownExamError(args.exam_id)
            edited = set_completion(
                day, args.exam_id, True, actual_hours=args.hours,
                units=parse_units(args.units), total_units=exam.total_units,
            )
        elif args.command == "uncomplete":
            edited = set_completion(day, args.exam_id, False)
        elif args.command == "hours":
            edited = set_available_hours(day, args.hours)
        else:
            edited = set_day_available(day, args.state == "on")
        result = apply_day_edit(edited, days, exams, settings, today=today, policy=policy)
        report(result)
        store.save_days(result.days)
        return 0

    if args.command == "move":
        days = move_assignment(days, args.exam_id, parse_date(args.from_date), parse_date(args.to_date))
        store.save_days(days)
        return 0

    if args.command == "log-session":
        if not any(e.exam_id == args.exam_id for e in exams):
            raise PlannerError(f"Unknown exam {args.exam_id}")
        sessions, _ = log_session(
            store.load_sessions(), args.exam_id, args.minutes,
            units=parse_units(args.units) or (), notes=args.notes,
        )
        store.save_sessions(sessions)
        return 0

    if args.command == "stats":
        stats = study_statistics(exams, days, store.load_sessions(), today=today)
        print(json.dumps(stats, indent=2))
        return 0

    if args.command == "show":
        start = parse_date(args.from_date) if args.from_date else today
        names = {e.exam_id: e.name for e in exams}
        print("\n".join(format_plan(days, names, start, args.days)))
        return 0

    return 2


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(args)
        logging.basicConfig(level=resolve_log_level(config["log_level"]), format="%(levelname)s %(message)s")
        return run(args, config)
    except (PlannerError, ValidationError, ValueError, OSError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
