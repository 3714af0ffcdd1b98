"""
Leveling Engine
===============

Maps accumulated XP to a level through a fixed threshold table and awards XP.
Levels never go down: XP only accumulates.
"""

import logging
from typing import Dict, Optional

from kidvocab.core.dedup import InFlightRegistry, fingerprint, get_in_flight_registry
from kidvocab.core.signals import InvalidationBus, get_invalidation_bus

from .db_operations import LevelDBOperations, get_level_db_operations
from .models import LEVEL_XP_THRESHOLDS, MAX_LEVEL, MIN_LEVEL, LevelState, XPAward

logger = logging.getLogger(__name__)


def get_xp_for_level(level: int) -> int:
    """Cumulative XP needed to reach ``level``; 0 outside the table."""
    if level < MIN_LEVEL or level > MAX_LEVEL:
        return 0
    return LEVEL_XP_THRESHOLDS[level - 1]


def get_xp_for_next_level(level: int) -> int:
    """Threshold of the level after ``level``; the top level maps to its own threshold."""
    if level >= MAX_LEVEL:
        return LEVEL_XP_THRESHOLDS[-1]
    if level < MIN_LEVEL:
        return LEVEL_XP_THRESHOLDS[0]
    return LEVEL_XP_THRESHOLDS[level]


def get_level_content_type(level: int) -> str:
    if level <= 1:
        return "letters"
    if level == 2:
        return "basic_words"
    return "advanced_words"


def can_access_level(learner_level: int, required_level: int) -> bool:
    return learner_level >= required_level


class LevelingEngine:
    def __init__(
        self,
        db_ops: Optional[LevelDBOperations] = None,
        registry: Optional[InFlightRegistry] = None,
        bus: Optional[InvalidationBus] = None,
    ):
        self.db_ops = db_ops or get_level_db_operations()
        self.registry = registry or get_in_flight_registry()
        self.bus = bus or get_invalidation_bus()

    async def get_level_state(self, learner_id: str) -> LevelState:
        """Current level state, created at level 1 with no XP on first read."""
        key = fingerprint("level-state", learner_id)
        return await self.registry.run(key, lambda: self.db_ops.get_or_create_level_state(learner_id))

    async def add_xp(self, learner_id: str, amount: int, skip_side_effect: bool = False) -> XPAward:
        if amount < 0:
            raise ValueError("XP amount must not be negative")

        previous_level, state = await self.db_ops.add_xp(learner_id, amount)
        leveled_up = state.level > previous_level
        if leveled_up:
            logger.info("Learner %s leveled up: %d -> %d (%d XP)", learner_id, previous_level, state.level, state.xp)
        if not skip_side_effect:
            self.bus.invalidate("/progress")
        return XPAward(level=state.level, xp=state.xp, leveled_up=leveled_up)

    async def get_level_progress(self, learner_id: str) -> Dict[str, int]:
        """Level, XP and how far the learner is towards the next level."""
        state = await self.get_level_state(learner_id)
        current = get_xp_for_level(state.level)
        following = get_xp_for_next_level(state.level)
        if state.level >= MAX_LEVEL or following <= current:
            percent = 100
        else:
            percent = min(100, int((state.xp - current) * 100 / (following - current)))
        return {
            "level": state.level,
            "xp": state.xp,
            "current_level_xp": current,
            "next_level_xp": following,
            "percent_to_next_level": max(0, percent),
        }


# Singleton instance
_leveling_engine = None


def get_leveling_engine() -> LevelingEngine:
    global _leveling_engine
    if _leveling_engine is None:
        _leveling_engine = LevelingEngine()
    return _leveling_engine
