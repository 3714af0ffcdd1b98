"""
Database Operations for Daily Plans
"""

import logging
from typing import List, Optional

from kidvocab.core.database import get_db_connection
from kidvocab.modules.catalog.db_operations import WORD_COLUMNS
from kidvocab.modules.catalog.models import Word

from .models import DailyPlan, DailyPlanWord

logger = logging.getLogger(__name__)

_PLAN_WORD_COLUMNS = ", ".join(f"w.{column.strip()}" for column in WORD_COLUMNS.split(","))


class PlanDBOperations:
    """Database operations for daily_plans and daily_plan_words."""

    async def _load_words(self, conn, plan_id: str) -> List[DailyPlanWord]:
        rows = await conn.fetch(
            f"""SELECT dpw.word_id, dpw.position, {_PLAN_WORD_COLUMNS}
                FROM daily_plan_words dpw
                JOIN words w ON w.id = dpw.word_id
                WHERE dpw.daily_plan_id = $1
                ORDER BY dpw.position""",
            plan_id,
        )
        return [
            DailyPlanWord(word_id=str(row["word_id"]), position=row["position"], word=Word.from_record(row))
            for row in rows
        ]

    async def get_plan(self, learner_id: str, date: str) -> Optional[DailyPlan]:
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                "SELECT id, learner_id, date, created_at FROM daily_plans WHERE learner_id = $1 AND date = $2",
                learner_id,
                date,
            )
            if row is None:
                return None
            words = await self._load_words(conn, row["id"])
            return DailyPlan(
                id=str(row["id"]),
                learner_id=str(row["learner_id"]),
                date=row["date"],
                words=words,
                created_at=row["created_at"],
            )
        finally:
            await conn.close()

    async def replace_plan(self, learner_id: str, date: str, word_ids: List[str]) -> DailyPlan:
        """Drop any plan for (learner, date) with its words, then insert the new one."""
        conn = await get_db_connection()
        try:
            async with conn.transaction():
                existing_id = await conn.fetchval(
                    "SELECT id FROM daily_plans WHERE learner_id = $1 AND date = $2", learner_id, date
                )
                if existing_id is not None:
                    await conn.execute("DELETE FROM daily_plan_words WHERE daily_plan_id = $1", existing_id)
                    await conn.execute("DELETE FROM daily_plans WHERE id = $1", existing_id)
                    logger.info("Replacing daily plan %s for learner %s on %s", existing_id, learner_id, date)

                row = await conn.fetchrow(
                    "INSERT INTO daily_plans (learner_id, date) VALUES ($1, $2) RETURNING id, learner_id, date, created_at",
                    learner_id,
                    date,
                )
                if word_ids:
                    await conn.executemany(
                        "INSERT INTO daily_plan_words (daily_plan_id, word_id, position) VALUES ($1, $2, $3)",
                        [(row["id"], word_id, position) for position, word_id in enumerate(word_ids)],
                    )

            words = await self._load_words(conn, row["id"])
            return DailyPlan(
                id=str(row["id"]),
                learner_id=str(row["learner_id"]),
                date=row["date"],
                words=words,
                created_at=row["created_at"],
            )
        finally:
            await conn.close()


# Singleton instance
_plan_db_ops = None


def get_plan_db_operations() -> PlanDBOperations:
    global _plan_db_ops
    if _plan_db_ops is None:
        _plan_db_ops = PlanDBOperations()
    return _plan_db_ops
