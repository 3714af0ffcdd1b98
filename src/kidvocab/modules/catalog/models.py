"""
Catalog data models: words and letters
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple


@dataclass
class Word:
    """Vocabulary item shown to learners"""

    id: str
    english_word: str
    translation: str
    category: str
    difficulty: int = 1
    active: bool = True
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    example_en: Optional[str] = None
    example_translation: Optional[str] = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "Word":
        return cls(
            id=str(row["id"]),
            english_word=row["english_word"],
            translation=row["translation"],
            category=row["category"],
            difficulty=row["difficulty"],
            active=row["active"],
            image_url=row.get("image_url"),
            audio_url=row.get("audio_url"),
            example_en=row.get("example_en"),
            example_translation=row.get("example_translation"),
        )


@dataclass
class Letter:
    """Alphabet letter taught at level 1"""

    id: str
    letter: str
    name: str
    order: int
    active: bool = True

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "Letter":
        return cls(
            id=str(row["id"]),
            letter=row["letter"],
            name=row["name"],
            order=row["order"],
            active=row["active"],
        )


def difficulty_filter_for_level(level: Optional[int]) -> Optional[Tuple[str, int]]:
    """Map a learner level to the word-difficulty tier it studies.

    Level 1 is letters only, level 2 covers basic words (difficulty 1) and
    every higher level covers the harder words (difficulty 2 and up).
    Returns ``(operator, value)`` or None when no tier applies.
    """
    if level is None or level < 2:
        return None
    if level == 2:
        return ("=", 1)
    return (">=", 2)
