"""
Database Operations for Letter Progress

Letters are optional content: reads degrade to empty results while the
letter tables are missing.
"""

import logging
from datetime import datetime
from typing import List, Tuple

import asyncpg

from kidvocab.core.database import get_db_connection
from kidvocab.modules.catalog.models import Letter

from .models import LetterAttemptResult, LetterProgress, next_letter_state

logger = logging.getLogger(__name__)


class LetterProgressDBOperations:
    async def record_letter_attempt(
        self, learner_id: str, letter_id: str, correct: bool, seen_at: datetime
    ) -> Tuple[bool, LetterAttemptResult]:
        """Apply one answer to the learner's row for the letter, creating it if needed.

        Returns whether the letter was mastered before the answer, and the
        counters after it.
        """
        conn = await get_db_connection()
        try:
            async with conn.transaction():
                await conn.execute(
                    """INSERT INTO letter_progress (learner_id, letter_id, times_seen, times_correct, mastered)
                       VALUES ($1, $2, 0, 0, FALSE)
                       ON CONFLICT (learner_id, letter_id) DO NOTHING""",
                    learner_id,
                    letter_id,
                )
                row = await conn.fetchrow(
                    """SELECT id, times_seen, times_correct, mastered FROM letter_progress
                       WHERE learner_id = $1 AND letter_id = $2
                       FOR UPDATE""",
                    learner_id,
                    letter_id,
                )
                result = next_letter_state(row["times_seen"], row["times_correct"], correct)
                await conn.execute(
                    """UPDATE letter_progress
                       SET times_seen = $2, times_correct = $3, mastered = $4, last_seen_at = $5, updated_at = NOW()
                       WHERE id = $1""",
                    row["id"],
                    result.times_seen,
                    result.times_correct,
                    result.mastered,
                    seen_at,
                )
            return row["mastered"], result
        finally:
            await conn.close()

    async def list_letter_progress(self, learner_id: str) -> List[LetterProgress]:
        """Progress rows in letter order; empty when the tables are not there yet."""
        conn = await get_db_connection()
        try:
            rows = await conn.fetch(
                """SELECT lp.id, lp.learner_id, lp.letter_id, lp.times_seen, lp.times_correct, lp.mastered,
                          lp.last_seen_at, l.letter, l.name, l."order", l.active
                   FROM letter_progress lp
                   JOIN letters l ON l.id = lp.letter_id
                   WHERE lp.learner_id = $1
                   ORDER BY l."order" ASC""",
                learner_id,
            )
            return [
                LetterProgress.from_record(
                    row,
                    letter=Letter(
                        id=str(row["letter_id"]),
                        letter=row["letter"],
                        name=row["name"],
                        order=row["order"],
                        active=row["active"],
                    ),
                )
                for row in rows
            ]
        except asyncpg.exceptions.UndefinedTableError as e:
            logger.warning(f"Letter progress unavailable for learner {learner_id}: {e}")
            return []
        finally:
            await conn.close()

    async def count_mastered_letters(self, learner_id: str) -> int:
        conn = await get_db_connection()
        try:
            result = await conn.fetchval(
                "SELECT COUNT(*) FROM letter_progress WHERE learner_id = $1 AND mastered = TRUE", learner_id
            )
            return result if result else 0
        except asyncpg.exceptions.UndefinedTableError as e:
            logger.warning(f"Letter progress unavailable for learner {learner_id}: {e}")
            return 0
        finally:
            await conn.close()


# Singleton instance
_letter_db_ops = None


def get_letter_progress_db_operations() -> LetterProgressDBOperations:
    global _letter_db_ops
    if _letter_db_ops is None:
        _letter_db_ops = LetterProgressDBOperations()
    return _letter_db_ops
