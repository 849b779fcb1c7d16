from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Tuple

from pydantic import ValidationError

from models import Exam, Settings, StorageError, StudyDay, StudySession
from models_pydantic import ExamPydantic, SettingsPydantic, StudyDayPydantic, StudySessionPydantic

logger = logging.getLogger(__name__)

EXAMS_KEY = "exams"
DAYS_KEY = "studyDays"
SESSIONS_KEY = "studySessions"
SETTINGS_KEY = "settings"


class PlanStore:
    """Keeps the planner's four records as JSON files in one directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _read(self, key: str, default: Any) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Could not read {path}: {exc}") from exc

    def _write(self, key: str, payload: Any) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Could not write {path}: {exc}") from exc
        logger.info("Wrote %s", path)

    def _parse_list(self, key: str, model) -> List[Any]:
        payload = self._read(key, [])
        if not isinstance(payload, list):
            raise StorageError(f"{self._path(key)} does not hold a list")
        try:
            return [model.model_validate(item).to_domain() for item in payload]
        except ValidationError as exc:
            raise StorageError(f"Invalid record in {self._path(key)}: {exc}") from exc

    def load_exams(self) -> Tuple[Exam, ...]:
        exams = tuple(self._parse_list(EXAMS_KEY, ExamPydantic))
        logger.debug("Loaded %d exams from %s", len(exams), self.directory)
        return exams

    def load_days(self) -> Tuple[StudyDay, ...]:
        days = self._parse_list(DAYS_KEY, StudyDayPydantic)
        return tuple(sorted(days, key=lambda d: d.day))

    def load_sessions(self) -> Tuple[StudySession, ...]:
        return tuple(self._parse_list(SESSIONS_KEY, StudySessionPydantic))

    def load_settings(self) -> Settings:
        payload = self._read(SETTINGS_KEY, {})
        try:
            return SettingsPydantic.model_validate(payload).to_domain()
        except ValidationError as exc:
            raise StorageError(f"Invalid settings in {self._path(SETTINGS_KEY)}: {exc}") from exc

    def save_exams(self, exams: Iterable[Exam]) -> None:
        self._write(EXAMS_KEY, [ExamPydantic.from_domain(e).model_dump(mode="json") for e in exams])

    def save_days(self, days: Iterable[StudyDay]) -> None:
        self._write(DAYS_KEY, [StudyDayPydantic.from_domain(d).model_dump(mode="json") for d in days])

    def save_sessions(self, sessions: Iterable[StudySession]) -> None:
        self._write(SESSIONS_KEY, [StudySessionPydantic.from_domain(s).model_dump(mode="json") for s in sessions])

    def save_settings(self, settings: Settings) -> None:
        self._write(SETTINGS_KEY, SettingsPydantic.from_domain(settings).model_dump(mode="json"))
