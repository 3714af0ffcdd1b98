from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from kidvocab.modules.catalog.models import Letter

LEVEL1_MASTERED_LETTERS = 20
MASTERY_MIN_ATTEMPTS = 3


@dataclass
class LetterProgress:
    id: str
    learner_id: str
    letter_id: str
    times_seen: int = 0
    times_correct: int = 0
    mastered: bool = False
    last_seen_at: Optional[datetime] = None
    letter: Optional[Letter] = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any], letter: Optional[Letter] = None) -> "LetterProgress":
        return cls(
            id=str(row["id"]),
            learner_id=str(row["learner_id"]),
            letter_id=str(row["letter_id"]),
            times_seen=row["times_seen"],
            times_correct=row["times_correct"],
            mastered=row["mastered"],
            last_seen_at=row["last_seen_at"],
            letter=letter,
        )


@dataclass
class LetterAttemptResult:
    mastered: bool
    times_seen: int
    times_correct: int


def next_letter_state(times_seen: int, times_correct: int, correct: bool) -> LetterAttemptResult:
    """Counters after one more answer.

    A first answer decides mastery on its own; after that mastery needs
    ``MASTERY_MIN_ATTEMPTS`` correct answers over as many attempts.
    """
    seen = times_seen + 1
    right = times_correct + (1 if correct else 0)
    if times_seen == 0:
        mastered = correct
    else:
        mastered = right >= MASTERY_MIN_ATTEMPTS and seen >= MASTERY_MIN_ATTEMPTS
    return LetterAttemptResult(mastered=mastered, times_seen=seen, times_correct=right)
