"""
Progress Tracker
================

Per-learner, per-word learning state: exposure counts, quiz correctness and
the mastery score derived from them. Mutations go through the in-flight
registry so concurrent identical calls reach the store only once.
"""

import logging
from typing import List, Optional

from kidvocab.core import dates
from kidvocab.core.dedup import InFlightRegistry, fingerprint, get_in_flight_registry
from kidvocab.core.signals import InvalidationBus, get_invalidation_bus
from kidvocab.modules.catalog.db_operations import CatalogDBOperations, get_catalog_db_operations
from kidvocab.modules.catalog.models import Word

from .db_operations import ProgressDBOperations, get_progress_db_operations
from .models import LearnerProgress, QuestionType

logger = logging.getLogger(__name__)

PROGRESS_PATH = "/progress"


class ProgressTracker:
    """Tracks what each learner has seen and how well they answer."""

    def __init__(
        self,
        db_ops: Optional[ProgressDBOperations] = None,
        catalog: Optional[CatalogDBOperations] = None,
        registry: Optional[InFlightRegistry] = None,
        bus: Optional[InvalidationBus] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.db_ops = db_ops or get_progress_db_operations()
        self.catalog = catalog or get_catalog_db_operations()
        self.registry = registry or get_in_flight_registry()
        self.bus = bus or get_invalidation_bus()

    async def get_progress(self, learner_id: str, item_id: str) -> Optional[LearnerProgress]:
        return await self.db_ops.get_progress(learner_id, item_id)

    async def get_or_create_progress(self, learner_id: str, item_id: str) -> LearnerProgress:
        """Existing record, or a new one with every counter at zero."""
        return await self.db_ops.get_or_create_progress(learner_id, item_id)

    async def mark_word_seen(self, learner_id: str, item_id: str, skip_side_effect: bool = False) -> None:
        """Count one presentation of the word in learning mode."""
        key = fingerprint("mark-seen", learner_id, item_id)
        await self.registry.run(key, lambda: self._mark_word_seen(learner_id, item_id, skip_side_effect))

    async def _mark_word_seen(self, learner_id: str, item_id: str, skip_side_effect: bool) -> None:
        progress = await self.get_or_create_progress(learner_id, item_id)
        await self.db_ops.increment_times_seen(progress.id, dates.utcnow())
        if not skip_side_effect:
            self.bus.invalidate(PROGRESS_PATH)

    async def record_quiz_attempt(
        self,
        learner_id: str,
        item_id: str,
        question_type: QuestionType,
        correct: bool,
        is_extra: bool = False,
    ) -> LearnerProgress:
        """Log the answer and fold it into the word's mastery score.

        A wrong answer flags the word for review; a later correct answer
        leaves the flag in place.
        """
        question_type = QuestionType(question_type)
        key = fingerprint("quiz", learner_id, item_id, question_type.value, correct, is_extra)
        return await self.registry.run(
            key, lambda: self._record_quiz_attempt(learner_id, item_id, question_type, correct, is_extra)
        )

    async def _record_quiz_attempt(
        self,
        learner_id: str,
        item_id: str,
        question_type: QuestionType,
        correct: bool,
        is_extra: bool,
    ) -> LearnerProgress:
        await self.db_ops.create_quiz_attempt(learner_id, item_id, question_type, correct, is_extra)

        progress = await self.get_or_create_progress(learner_id, item_id)
        progress = await self.db_ops.record_quiz_result(progress.id, correct, dates.utcnow())
        self.bus.invalidate(PROGRESS_PATH)
        return progress

    async def get_all_progress(self, learner_id: str) -> List[LearnerProgress]:
        """All of a learner's progress rows with their words."""
        key = fingerprint("all-progress", learner_id)
        return await self.registry.run(key, lambda: self.db_ops.list_progress(learner_id))

    async def get_words_needing_review(self, learner_id: str, level: Optional[int] = None) -> List[LearnerProgress]:
        return await self.db_ops.list_progress(learner_id, needs_review=True, level=level)

    async def get_unseen_words(self, learner_id: str, level: Optional[int] = None) -> List[Word]:
        """Active words the learner has no progress row for."""
        # The exclusion set comes first; the catalog query depends on it.
        seen_ids = await self.db_ops.get_seen_item_ids(learner_id)
        return await self.catalog.find_words(level=level, exclude_ids=sorted(seen_ids))

    async def check_daily_completion(self, learner_id: str, kind: str) -> bool:
        """Whether the learner learned ("learn") or quizzed ("quiz") anything today."""
        since = dates.start_of_today()
        if kind == "learn":
            return await self.db_ops.has_progress_seen_since(learner_id, since)
        if kind == "quiz":
            return await self.db_ops.has_quiz_attempt_since(learner_id, since)
        raise ValueError(f"Unknown completion kind: {kind}")

    async def reset_progress(self, learner_id: str) -> int:
        """Remove every progress row and quiz attempt of a learner."""
        deleted = await self.db_ops.delete_learner_progress(learner_id)
        self.bus.invalidate(PROGRESS_PATH)
        return deleted


# Singleton instance
_progress_tracker = None


def get_progress_tracker() -> ProgressTracker:
    """Get singleton instance of ProgressTracker."""
    global _progress_tracker
    if _progress_tracker is None:
        _progress_tracker = ProgressTracker()
    return _progress_tracker
