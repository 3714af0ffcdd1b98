"""
Progress data models
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from kidvocab.modules.catalog.models import Word


class QuestionType(Enum):
    """Quiz question directions"""

    EN_TO_TARGET = "EN_TO_TARGET"  # English word, pick the translation
    TARGET_TO_EN = "TARGET_TO_EN"  # Translation, pick the English word
    AUDIO_TO_EN = "AUDIO_TO_EN"  # Spoken word, pick the English word


def compute_mastery(quiz_correct: int, quiz_attempts: int) -> int:
    """Percentage of correct answers, 0 when nothing was attempted."""
    if quiz_attempts <= 0:
        return 0
    # halves round up: 1/8 -> 13
    return int(quiz_correct / quiz_attempts * 100 + 0.5)


@dataclass
class LearnerProgress:
    """Per learner, per word learning record"""

    id: str
    learner_id: str
    item_id: str
    times_seen_in_learn: int = 0
    quiz_attempts: int = 0
    quiz_correct: int = 0
    mastery_score: int = 0
    needs_review: bool = False
    last_seen_at: Optional[datetime] = None
    word: Optional[Word] = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any], word: Optional[Word] = None) -> "LearnerProgress":
        return cls(
            id=str(row["id"]),
            learner_id=str(row["learner_id"]),
            item_id=str(row["item_id"]),
            times_seen_in_learn=row["times_seen_in_learn"],
            quiz_attempts=row["quiz_attempts"],
            quiz_correct=row["quiz_correct"],
            mastery_score=row["mastery_score"],
            needs_review=row["needs_review"],
            last_seen_at=row["last_seen_at"],
            word=word,
        )


@dataclass
class QuizAttemptRecord:
    """Append-only log entry for one quiz answer"""

    id: str
    learner_id: str
    item_id: str
    question_type: QuestionType
    correct: bool
    is_extra: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "QuizAttemptRecord":
        return cls(
            id=str(row["id"]),
            learner_id=str(row["learner_id"]),
            item_id=str(row["item_id"]),
            question_type=QuestionType(row["question_type"]),
            correct=row["correct"],
            is_extra=row["is_extra"],
            created_at=row["created_at"],
        )
