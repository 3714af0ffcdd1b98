"""
Letter progress for level 1 learners.

A letter counts as mastered once it was answered correctly at least three
times over at least three attempts, or on a correct first attempt.
"""

import logging
from typing import List, Optional

from kidvocab.core import dates
from kidvocab.core.dedup import InFlightRegistry, fingerprint, get_in_flight_registry
from kidvocab.modules.catalog.db_operations import CatalogDBOperations, get_catalog_db_operations
from kidvocab.modules.catalog.models import Letter
from kidvocab.modules.leveling.leveling_engine import LevelingEngine, get_leveling_engine
from kidvocab.modules.leveling.models import XP_PER_LETTER_MASTERED

from .db_operations import LetterProgressDBOperations, get_letter_progress_db_operations
from .models import LEVEL1_MASTERED_LETTERS, LetterAttemptResult, LetterProgress

logger = logging.getLogger(__name__)


class LetterTracker:
    def __init__(
        self,
        db_ops: Optional[LetterProgressDBOperations] = None,
        catalog: Optional[CatalogDBOperations] = None,
        leveling: Optional[LevelingEngine] = None,
        registry: Optional[InFlightRegistry] = None,
    ):
        self.db_ops = db_ops or get_letter_progress_db_operations()
        self.catalog = catalog or get_catalog_db_operations()
        self.leveling = leveling or get_leveling_engine()
        self.registry = registry or get_in_flight_registry()

    async def mark_letter_seen(self, learner_id: str, letter_id: str, correct: bool) -> LetterAttemptResult:
        key = fingerprint("letter-seen", learner_id, letter_id, correct)
        return await self.registry.run(key, lambda: self._mark_letter_seen(learner_id, letter_id, correct))

    async def _mark_letter_seen(self, learner_id: str, letter_id: str, correct: bool) -> LetterAttemptResult:
        was_mastered, result = await self.db_ops.record_letter_attempt(learner_id, letter_id, correct, dates.utcnow())

        if result.mastered and not was_mastered:
            logger.info("Learner %s mastered letter %s", learner_id, letter_id)
            await self.leveling.add_xp(learner_id, XP_PER_LETTER_MASTERED)
        return result

    async def get_all_letter_progress(self, learner_id: str) -> List[LetterProgress]:
        return await self.db_ops.list_letter_progress(learner_id)

    async def get_unmastered_letters(self, learner_id: str) -> List[Letter]:
        letters = await self.catalog.get_all_letters()
        progress = await self.get_all_letter_progress(learner_id)
        mastered_ids = {row.letter_id for row in progress if row.mastered}
        return [letter for letter in letters if letter.id not in mastered_ids]

    async def check_level1_complete(self, learner_id: str) -> bool:
        return await self.db_ops.count_mastered_letters(learner_id) >= LEVEL1_MASTERED_LETTERS


# Singleton instance
_letter_tracker = None


def get_letter_tracker() -> LetterTracker:
    global _letter_tracker
    if _letter_tracker is None:
        _letter_tracker = LetterTracker()
    return _letter_tracker
