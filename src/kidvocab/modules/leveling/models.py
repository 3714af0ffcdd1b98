"""
Leveling data models and the XP threshold table
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional

# Cumulative XP needed to reach each level; index = level - 1
LEVEL_XP_THRESHOLDS: List[int] = [0, 100, 250, 450, 700, 1000, 1350, 1750, 2200, 2700]

MIN_LEVEL = 1
MAX_LEVEL = len(LEVEL_XP_THRESHOLDS)

XP_PER_LETTER_MASTERED = 5


def level_for_xp(xp: int) -> int:
    """Highest level whose threshold ``xp`` reaches."""
    for index in range(len(LEVEL_XP_THRESHOLDS) - 1, -1, -1):
        if xp >= LEVEL_XP_THRESHOLDS[index]:
            return index + 1
    return MIN_LEVEL


@dataclass
class LevelState:
    """A learner's level and accumulated XP"""

    learner_id: str
    level: int = MIN_LEVEL
    xp: int = 0
    updated_at: Optional[datetime] = None
    id: Optional[str] = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "LevelState":
        return cls(
            id=str(row["id"]),
            learner_id=str(row["learner_id"]),
            level=row["level"],
            xp=row["xp"],
            updated_at=row["updated_at"],
        )


@dataclass
class XPAward:
    """Outcome of adding XP"""

    level: int
    xp: int
    leveled_up: bool
