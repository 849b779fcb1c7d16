from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannerPolicy:
    """Named knobs of the greedy allocation heuristic.

    The defaults reproduce the planner's historical behaviour; a config
    file may override any of them under its ``policy`` key.
    """

    study_efficiency: float = 0.8
    surplus_threshold: float = 1.5
    surplus_skip_ratio: float = 0.7
    near_exam_skip_ratio: float = 0.4
    small_far_skip_ratio: float = 0.6
    small_exam_units: int = 30
    far_exam_days: int = 30
    compression_min_days: int = 15
    modified_day_multiplier: float = 1.5
    review_hours: float = 1.0
    min_session_hours: float = 0.5
    hours_precision: int = 1
    balance_tolerance: float = 0.1

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "PlannerPolicy":
        if not data:
            return cls()
        known = {f.name: f.type for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown policy setting %s", key)
                continue
            default = getattr(cls, key)
            values[key] = int(value) if isinstance(default, int) else float(value)
        return cls(**values)


DEFAULT_POLICY = PlannerPolicy()
