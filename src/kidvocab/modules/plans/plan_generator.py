"""
Daily Plan Generator
====================

Picks the words a learner studies on a given date. A plan is replaced, never
merged: creating a plan for a date that already has one discards the old plan
and its word list first.
"""

import logging
from typing import List, Optional

from kidvocab.core import dates
from kidvocab.core.exceptions import EmptyCatalogError
from kidvocab.modules.catalog.db_operations import CatalogDBOperations, get_catalog_db_operations
from kidvocab.modules.catalog.models import Word
from kidvocab.modules.leveling.leveling_engine import LevelingEngine, get_leveling_engine
from kidvocab.modules.progress.progress_tracker import ProgressTracker, get_progress_tracker
from kidvocab.settings import get_settings

from .db_operations import PlanDBOperations, get_plan_db_operations
from .models import DailyPlan

logger = logging.getLogger(__name__)


class PlanGenerator:
    def __init__(
        self,
        db_ops: Optional[PlanDBOperations] = None,
        catalog: Optional[CatalogDBOperations] = None,
        leveling: Optional[LevelingEngine] = None,
        progress: Optional[ProgressTracker] = None,
    ):
        self.db_ops = db_ops or get_plan_db_operations()
        self.catalog = catalog or get_catalog_db_operations()
        self.leveling = leveling or get_leveling_engine()
        self.progress = progress or get_progress_tracker()

    async def get_daily_plan(self, learner_id: str, date: str) -> Optional[DailyPlan]:
        return await self.db_ops.get_plan(learner_id, date)

    async def get_today_plan(self, learner_id: str) -> Optional[DailyPlan]:
        return await self.get_daily_plan(learner_id, dates.to_iso(dates.today()))

    async def create_daily_plan(self, learner_id: str, date: str, item_ids: List[str]) -> DailyPlan:
        """Store ``item_ids`` as the learner's plan for ``date``, replacing any existing plan."""
        unique_ids = list(dict.fromkeys(item_ids))
        plan = await self.db_ops.replace_plan(learner_id, date, unique_ids)
        logger.info("Saved daily plan for learner %s on %s with %d words", learner_id, date, len(unique_ids))
        return plan

    async def generate_starter_pack(self, learner_id: str, date: str, count: Optional[int] = None) -> DailyPlan:
        """Plan built from the preferred starter categories at the learner's tier.

        Falls back to other categories of the same tier when the preferred ones
        run short; raises EmptyCatalogError when the tier has no words at all.
        """
        settings = get_settings()
        count = count or settings.DEFAULT_PLAN_SIZE

        state = await self.leveling.get_level_state(learner_id)
        # Letters-only learners start on the basic words
        tier_filter = {"difficulty": 1} if state.level <= 2 else {"level": state.level}

        words: List[Word] = await self.catalog.find_words(
            categories=settings.STARTER_PACK_CATEGORIES, limit=count, **tier_filter
        )
        if len(words) < count:
            extra = await self.catalog.find_words(
                exclude_ids=[word.id for word in words], limit=count - len(words), **tier_filter
            )
            words.extend(extra)

        if not words:
            raise EmptyCatalogError("No words found for starter pack")

        return await self.create_daily_plan(learner_id, date, [word.id for word in words])

    async def auto_generate_plan(
        self,
        learner_id: str,
        date: str,
        difficulty: Optional[int] = None,
        category: Optional[str] = None,
        count: int = 10,
        prefer_unseen: bool = False,
        prefer_low_mastery: bool = False,
    ) -> DailyPlan:
        """Plan from the catalog, optionally skipping seen words or weakest-first."""
        progress_rows = await self.progress.get_all_progress(learner_id)
        mastery = {row.item_id: row.mastery_score for row in progress_rows}

        words = await self.catalog.find_words(difficulty=difficulty, category=category)

        if prefer_unseen:
            words = [word for word in words if word.id not in mastery]
        elif prefer_low_mastery:
            words = sorted(words, key=lambda word: mastery.get(word.id, 0))

        selected = words[:count]
        if not selected:
            raise EmptyCatalogError("No eligible words found for daily plan")
        return await self.create_daily_plan(learner_id, date, [word.id for word in selected])


# Singleton instance
_plan_generator = None


def get_plan_generator() -> PlanGenerator:
    global _plan_generator
    if _plan_generator is None:
        _plan_generator = PlanGenerator()
    return _plan_generator
