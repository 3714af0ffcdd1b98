"""
Database Operations for Mission State
"""

import logging
from typing import List

from kidvocab.core.database import get_db_connection

from .models import MissionState, PeriodType

logger = logging.getLogger(__name__)

MISSION_COLUMNS = "id, learner_id, period_type, mission_key, target, progress, completed, period_start_date"


class MissionDBOperations:
    """Database operations for the mission_states table."""

    async def get_or_create_mission_state(
        self,
        learner_id: str,
        period_type: PeriodType,
        mission_key: str,
        target: int,
        period_start_date: str,
    ) -> MissionState:
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                f"""INSERT INTO mission_states
                        (learner_id, period_type, mission_key, target, progress, completed, period_start_date)
                    VALUES ($1, $2, $3, $4, 0, FALSE, $5)
                    ON CONFLICT (learner_id, period_type, mission_key, period_start_date) DO NOTHING
                    RETURNING {MISSION_COLUMNS}""",
                learner_id,
                period_type.value,
                mission_key,
                target,
                period_start_date,
            )
            if row is not None:
                logger.info(
                    "Created %s mission %s for learner %s (period %s)",
                    period_type.value,
                    mission_key,
                    learner_id,
                    period_start_date,
                )
            else:
                row = await conn.fetchrow(
                    f"""SELECT {MISSION_COLUMNS} FROM mission_states
                        WHERE learner_id = $1 AND period_type = $2 AND mission_key = $3 AND period_start_date = $4""",
                    learner_id,
                    period_type.value,
                    mission_key,
                    period_start_date,
                )
            return MissionState.from_record(row)
        finally:
            await conn.close()

    async def increment_mission_progress(self, mission_id: str, delta: int, target: int) -> MissionState:
        """Add ``delta`` to the stored progress, capped at ``target``.

        The row adopts ``target``, so completion is judged against the same
        target the progress is capped at.
        """
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                f"""UPDATE mission_states
                    SET target = $3,
                        progress = LEAST(progress + $2, $3),
                        completed = LEAST(progress + $2, $3) >= $3
                    WHERE id = $1
                    RETURNING {MISSION_COLUMNS}""",
                mission_id,
                delta,
                target,
            )
            return MissionState.from_record(row)
        finally:
            await conn.close()

    async def list_current_missions(self, learner_id: str, today: str, week_start: str) -> List[MissionState]:
        """Missions of today's daily period and this week's weekly period, incomplete daily ones first."""
        conn = await get_db_connection()
        try:
            rows = await conn.fetch(
                f"""SELECT {MISSION_COLUMNS} FROM mission_states
                    WHERE learner_id = $1
                      AND ((period_type = 'DAILY' AND period_start_date = $2)
                        OR (period_type = 'WEEKLY' AND period_start_date = $3))
                    ORDER BY period_type ASC, completed ASC, mission_key ASC""",
                learner_id,
                today,
                week_start,
            )
            return [MissionState.from_record(row) for row in rows]
        finally:
            await conn.close()


# Singleton instance
_mission_db_ops = None


def get_mission_db_operations() -> MissionDBOperations:
    global _mission_db_ops
    if _mission_db_ops is None:
        _mission_db_ops = MissionDBOperations()
    return _mission_db_ops
