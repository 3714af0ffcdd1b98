"""
Per-account application settings
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ExtraLearningStrategy(str, Enum):
    UNSEEN = "unseen"
    NEEDS_REVIEW = "needsReview"
    NEXT_PLANNED = "nextPlanned"


class StreakRule(str, Enum):
    LEARN = "learn"
    QUIZ = "quiz"
    EITHER = "either"
    BOTH = "both"


class RewardIntensity(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class QuestionTypeSettings(BaseModel):
    """Which quiz directions are enabled"""

    model_config = ConfigDict(populate_by_name=True)

    en_to_he: bool = Field(True, alias="enToHe")
    he_to_en: bool = Field(True, alias="heToEn")
    audio_to_en: bool = Field(False, alias="audioToEn")


class AppSettings(BaseModel):
    """Settings stored as a JSON blob on the parent account"""

    model_config = ConfigDict(populate_by_name=True)

    question_types: QuestionTypeSettings = Field(default_factory=QuestionTypeSettings, alias="questionTypes")
    quiz_length: int = Field(10, alias="quizLength", ge=1, le=100)
    extra_learning_strategy: ExtraLearningStrategy = Field(
        ExtraLearningStrategy.UNSEEN, alias="extraLearningStrategy"
    )
    streak_rule: StreakRule = Field(StreakRule.EITHER, alias="streakRule")
    reward_intensity: RewardIntensity = Field(RewardIntensity.NORMAL, alias="rewardIntensity")

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
