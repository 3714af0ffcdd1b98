"""
Mission data models
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class PeriodType(Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"


@dataclass
class MissionState:
    """Progress towards one mission in one period"""

    id: str
    learner_id: str
    period_type: PeriodType
    mission_key: str
    target: int
    progress: int = 0
    completed: bool = False
    period_start_date: str = ""

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "MissionState":
        return cls(
            id=str(row["id"]),
            learner_id=str(row["learner_id"]),
            period_type=PeriodType(row["period_type"]),
            mission_key=row["mission_key"],
            target=row["target"],
            progress=row["progress"],
            completed=row["completed"],
            period_start_date=row["period_start_date"],
        )


@dataclass
class MissionUpdate:
    progress: int
    completed: bool
