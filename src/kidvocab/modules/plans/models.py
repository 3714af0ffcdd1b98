"""
Daily plan data models
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from kidvocab.modules.catalog.models import Word


@dataclass
class DailyPlanWord:
    word_id: str
    position: int = 0
    word: Optional[Word] = None


@dataclass
class DailyPlan:
    """The words picked for one learner on one date"""

    id: str
    learner_id: str
    date: str
    words: List[DailyPlanWord] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def word_ids(self) -> List[str]:
        return [entry.word_id for entry in self.words]
