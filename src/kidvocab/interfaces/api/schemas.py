"""
Request bodies for the HTTP endpoints
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from kidvocab.modules.missions.models import PeriodType
from kidvocab.modules.progress.models import QuestionType

REQUIRED_WORD_FIELDS = ("english_word", "translation", "category", "difficulty", "active")


class QuizAttemptRequest(BaseModel):
    question_type: QuestionType
    correct: bool
    is_extra: bool = False


class XPRequest(BaseModel):
    amount: int = Field(..., ge=0)


class MissionProgressRequest(BaseModel):
    period_type: PeriodType
    target: int = Field(..., gt=0)
    delta: int = Field(1, ge=0)


class PlanRequest(BaseModel):
    item_ids: List[str]


class AutoPlanRequest(BaseModel):
    difficulty: Optional[int] = Field(None, ge=1)
    category: Optional[str] = None
    count: int = Field(10, ge=1, le=100)
    prefer_unseen: bool = False
    prefer_low_mastery: bool = False


class LearningSessionRequest(BaseModel):
    item_id: str
    words_count: int = Field(..., gt=0)
    xp_amount: int = Field(..., ge=0)


class LetterAttemptRequest(BaseModel):
    correct: bool


class ChildCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    avatar: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)
    grade: Optional[str] = None


class ChildUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    avatar: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)
    grade: Optional[str] = None


class WordCreateRequest(BaseModel):
    english_word: str = Field(..., min_length=1)
    translation: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    difficulty: int = Field(1, ge=1)
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    example_en: Optional[str] = None
    example_translation: Optional[str] = None


class WordUpdateRequest(BaseModel):
    english_word: Optional[str] = Field(None, min_length=1)
    translation: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    difficulty: Optional[int] = Field(None, ge=1)
    active: Optional[bool] = None
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    example_en: Optional[str] = None
    example_translation: Optional[str] = None

    def changes(self) -> dict:
        """Fields the client sent; a null for a required column leaves it unchanged."""
        sent = self.model_dump(exclude_unset=True)
        return {name: value for name, value in sent.items() if value is not None or name not in REQUIRED_WORD_FIELDS}
