"""
Mission/Quest Tracker
=====================

Daily and weekly progress counters. A period's rows are keyed by the period
start date, so a new day or week starts from fresh rows while old ones stay.
"""

import logging
from datetime import date
from typing import List, Optional, Union

from kidvocab.core import dates
from kidvocab.core.signals import InvalidationBus, get_invalidation_bus

from .db_operations import MissionDBOperations, get_mission_db_operations
from .models import MissionState, MissionUpdate, PeriodType

logger = logging.getLogger(__name__)


def period_start_date(period_type: Union[PeriodType, str], day: Optional[date] = None) -> str:
    """Start of the period containing ``day`` (today by default) as YYYY-MM-DD."""
    period_type = PeriodType(period_type)
    day = day or dates.today()
    if period_type is PeriodType.DAILY:
        return dates.to_iso(day)
    return dates.to_iso(dates.week_start(day))


class MissionTracker:
    def __init__(
        self,
        db_ops: Optional[MissionDBOperations] = None,
        bus: Optional[InvalidationBus] = None,
    ):
        self.db_ops = db_ops or get_mission_db_operations()
        self.bus = bus or get_invalidation_bus()

    async def get_or_create_mission_state(
        self,
        learner_id: str,
        period_type: Union[PeriodType, str],
        mission_key: str,
        target: int,
        period_start: str,
    ) -> MissionState:
        if target <= 0:
            raise ValueError("Mission target must be positive")
        return await self.db_ops.get_or_create_mission_state(
            learner_id, PeriodType(period_type), mission_key, target, period_start
        )

    async def update_mission_progress(
        self,
        learner_id: str,
        period_type: Union[PeriodType, str],
        mission_key: str,
        target: int,
        delta: int = 1,
        skip_side_effect: bool = False,
    ) -> MissionUpdate:
        """Advance a mission in the current period, capped at its target.

        ``skip_side_effect`` suppresses the refresh signal for callers that
        batch several updates and signal once themselves.
        """
        period_type = PeriodType(period_type)
        start = period_start_date(period_type)
        mission = await self.get_or_create_mission_state(learner_id, period_type, mission_key, target, start)

        updated = await self.db_ops.increment_mission_progress(mission.id, delta, target)

        if updated.completed and not mission.completed:
            logger.info("Learner %s completed %s mission %s", learner_id, period_type.value, mission_key)
        if not skip_side_effect:
            self.bus.invalidate("/progress")
        return MissionUpdate(progress=updated.progress, completed=updated.completed)

    async def get_all_missions(self, learner_id: str) -> List[MissionState]:
        """Missions live in the current day and week."""
        today = dates.today()
        return await self.db_ops.list_current_missions(
            learner_id, dates.to_iso(today), dates.to_iso(dates.week_start(today))
        )


# Singleton instance
_mission_tracker = None


def get_mission_tracker() -> MissionTracker:
    global _mission_tracker
    if _mission_tracker is None:
        _mission_tracker = MissionTracker()
    return _mission_tracker
