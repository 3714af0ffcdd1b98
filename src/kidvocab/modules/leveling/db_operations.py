"""
Database Operations for Level State
"""

import logging
from typing import Tuple

from kidvocab.core.database import get_db_connection

from .models import MIN_LEVEL, LevelState, level_for_xp

logger = logging.getLogger(__name__)

LEVEL_COLUMNS = "id, learner_id, level, xp, updated_at"


class LevelDBOperations:
    """Database operations for the level_states table."""

    async def get_or_create_level_state(self, learner_id: str) -> LevelState:
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                f"""INSERT INTO level_states (learner_id, level, xp)
                    VALUES ($1, $2, 0)
                    ON CONFLICT (learner_id) DO NOTHING
                    RETURNING {LEVEL_COLUMNS}""",
                learner_id,
                MIN_LEVEL,
            )
            if row is not None:
                logger.info("Created level state for learner %s", learner_id)
            else:
                row = await conn.fetchrow(f"SELECT {LEVEL_COLUMNS} FROM level_states WHERE learner_id = $1", learner_id)
            return LevelState.from_record(row)
        finally:
            await conn.close()

    async def add_xp(self, learner_id: str, amount: int) -> Tuple[int, LevelState]:
        """Add ``amount`` XP in place and raise the level to match.

        Returns the level before the award and the updated state. The row
        lock taken by the XP update serialises concurrent awards.
        """
        conn = await get_db_connection()
        try:
            async with conn.transaction():
                await conn.execute(
                    """INSERT INTO level_states (learner_id, level, xp)
                       VALUES ($1, $2, 0)
                       ON CONFLICT (learner_id) DO NOTHING""",
                    learner_id,
                    MIN_LEVEL,
                )
                row = await conn.fetchrow(
                    f"""UPDATE level_states SET xp = xp + $2, updated_at = NOW()
                        WHERE learner_id = $1
                        RETURNING {LEVEL_COLUMNS}""",
                    learner_id,
                    amount,
                )
                state = LevelState.from_record(row)
                previous_level = state.level
                new_level = max(level_for_xp(state.xp), previous_level)
                if new_level != previous_level:
                    row = await conn.fetchrow(
                        f"""UPDATE level_states SET level = $2
                            WHERE learner_id = $1
                            RETURNING {LEVEL_COLUMNS}""",
                        learner_id,
                        new_level,
                    )
                    state = LevelState.from_record(row)
            return previous_level, state
        finally:
            await conn.close()


# Singleton instance
_level_db_ops = None


def get_level_db_operations() -> LevelDBOperations:
    global _level_db_ops
    if _level_db_ops is None:
        _level_db_ops = LevelDBOperations()
    return _level_db_ops
