"""
Learning session completion

One call per learned word: marks the word seen, advances the daily
``learn_words`` mission and awards XP. Identical concurrent completions are
coalesced, so each table sees one write per burst.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from kidvocab.core.dedup import InFlightRegistry, fingerprint, get_in_flight_registry
from kidvocab.core.signals import InvalidationBus, get_invalidation_bus
from kidvocab.modules.leveling.leveling_engine import LevelingEngine, get_leveling_engine
from kidvocab.modules.missions.mission_tracker import MissionTracker, get_mission_tracker
from kidvocab.modules.missions.models import PeriodType
from kidvocab.modules.progress.progress_tracker import ProgressTracker, get_progress_tracker

logger = logging.getLogger(__name__)

LEARN_WORDS_MISSION = "learn_words"


class LearningSessionService:
    def __init__(
        self,
        progress: Optional[ProgressTracker] = None,
        missions: Optional[MissionTracker] = None,
        leveling: Optional[LevelingEngine] = None,
        registry: Optional[InFlightRegistry] = None,
        bus: Optional[InvalidationBus] = None,
    ):
        self.progress = progress or get_progress_tracker()
        self.missions = missions or get_mission_tracker()
        self.leveling = leveling or get_leveling_engine()
        self.registry = registry or get_in_flight_registry()
        self.bus = bus or get_invalidation_bus()

    async def complete_learning_session(
        self, learner_id: str, item_id: str, words_count: int, xp_amount: int
    ) -> Dict[str, Any]:
        key = fingerprint("session", learner_id, item_id, words_count, xp_amount)
        return await self.registry.run(
            key, lambda: self._complete_learning_session(learner_id, item_id, words_count, xp_amount)
        )

    async def _complete_learning_session(
        self, learner_id: str, item_id: str, words_count: int, xp_amount: int
    ) -> Dict[str, Any]:
        _, mission, award = await asyncio.gather(
            self.progress.mark_word_seen(learner_id, item_id, skip_side_effect=True),
            self.missions.update_mission_progress(
                learner_id, PeriodType.DAILY, LEARN_WORDS_MISSION, words_count, 1, skip_side_effect=True
            ),
            self.leveling.add_xp(learner_id, xp_amount, skip_side_effect=True),
        )
        self.bus.invalidate("/progress")

        return {
            "success": True,
            "level": award.level,
            "xp": award.xp,
            "leveled_up": award.leveled_up,
            "mission_progress": mission.progress,
            "mission_completed": mission.completed,
        }


# Singleton instance
_session_service = None


def get_learning_session_service() -> LearningSessionService:
    global _session_service
    if _session_service is None:
        _session_service = LearningSessionService()
    return _session_service
