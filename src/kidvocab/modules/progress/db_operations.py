"""
Database Operations for Learner Progress
========================================

Progress rows, the quiz-attempt log and the date queries used for streaks
and daily completion checks.
"""

import logging
from datetime import datetime
from typing import List, Optional, Set

from kidvocab.core.database import get_db_connection
from kidvocab.modules.catalog.db_operations import WORD_COLUMNS, build_word_filter
from kidvocab.modules.catalog.models import Word

from .models import LearnerProgress, QuestionType, QuizAttemptRecord, compute_mastery

logger = logging.getLogger(__name__)

PROGRESS_COLUMNS = (
    "id, learner_id, item_id, times_seen_in_learn, quiz_attempts, quiz_correct, "
    "mastery_score, needs_review, last_seen_at"
)

# Word columns prefixed for joins, aliased back to their plain names
_JOINED_WORD_COLUMNS = ", ".join(
    f"w.{column.strip()} AS word_{column.strip()}" for column in WORD_COLUMNS.split(",")
)
_JOINED_PROGRESS_COLUMNS = ", ".join(f"p.{column.strip()}" for column in PROGRESS_COLUMNS.split(","))


def _progress_with_word(row) -> LearnerProgress:
    word_fields = {key[len("word_"):]: row[key] for key in row.keys() if key.startswith("word_")}
    word = Word.from_record(word_fields) if word_fields.get("id") is not None else None
    return LearnerProgress.from_record(row, word=word)


class ProgressDBOperations:
    """Database operations for progress and quiz attempts."""

    async def get_progress(self, learner_id: str, item_id: str) -> Optional[LearnerProgress]:
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                f"SELECT {PROGRESS_COLUMNS} FROM progress WHERE learner_id = $1 AND item_id = $2",
                learner_id,
                item_id,
            )
            return LearnerProgress.from_record(row) if row else None
        finally:
            await conn.close()

    async def get_or_create_progress(self, learner_id: str, item_id: str) -> LearnerProgress:
        """Insert a zeroed row unless one exists, then return the stored row."""
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                f"""INSERT INTO progress (learner_id, item_id)
                    VALUES ($1, $2)
                    ON CONFLICT (learner_id, item_id) DO NOTHING
                    RETURNING {PROGRESS_COLUMNS}""",
                learner_id,
                item_id,
            )
            if row is not None:
                logger.info("Created progress for learner %s, word %s", learner_id, item_id)
            else:
                row = await conn.fetchrow(
                    f"SELECT {PROGRESS_COLUMNS} FROM progress WHERE learner_id = $1 AND item_id = $2",
                    learner_id,
                    item_id,
                )
            return LearnerProgress.from_record(row)
        finally:
            await conn.close()

    async def increment_times_seen(self, progress_id: str, seen_at: datetime) -> LearnerProgress:
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                f"""UPDATE progress
                    SET times_seen_in_learn = times_seen_in_learn + 1, last_seen_at = $2
                    WHERE id = $1
                    RETURNING {PROGRESS_COLUMNS}""",
                progress_id,
                seen_at,
            )
            return LearnerProgress.from_record(row)
        finally:
            await conn.close()

    async def record_quiz_result(self, progress_id: str, correct: bool, seen_at: datetime) -> LearnerProgress:
        """Count one answer against the stored counters and rescore mastery from them.

        A wrong answer sets ``needs_review``; a correct one never clears it.
        """
        conn = await get_db_connection()
        try:
            async with conn.transaction():
                counts = await conn.fetchrow(
                    """UPDATE progress
                       SET quiz_attempts = quiz_attempts + 1,
                           quiz_correct = quiz_correct + $2,
                           needs_review = needs_review OR $3,
                           last_seen_at = $4
                       WHERE id = $1
                       RETURNING quiz_attempts, quiz_correct""",
                    progress_id,
                    1 if correct else 0,
                    not correct,
                    seen_at,
                )
                row = await conn.fetchrow(
                    f"UPDATE progress SET mastery_score = $2 WHERE id = $1 RETURNING {PROGRESS_COLUMNS}",
                    progress_id,
                    compute_mastery(counts["quiz_correct"], counts["quiz_attempts"]),
                )
            return LearnerProgress.from_record(row)
        finally:
            await conn.close()

    async def create_quiz_attempt(
        self,
        learner_id: str,
        item_id: str,
        question_type: QuestionType,
        correct: bool,
        is_extra: bool = False,
    ) -> QuizAttemptRecord:
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                """INSERT INTO quiz_attempts (learner_id, item_id, question_type, correct, is_extra)
                   VALUES ($1, $2, $3, $4, $5)
                   RETURNING id, learner_id, item_id, question_type, correct, is_extra, created_at""",
                learner_id,
                item_id,
                question_type.value,
                correct,
                is_extra,
            )
            return QuizAttemptRecord.from_record(row)
        finally:
            await conn.close()

    async def list_progress(
        self,
        learner_id: str,
        *,
        needs_review: Optional[bool] = None,
        level: Optional[int] = None,
    ) -> List[LearnerProgress]:
        """Progress rows joined with their word, most urgent first."""
        word_where, params = build_word_filter(active_only=False, level=level, alias="w")
        params.append(learner_id)
        clauses = [f"p.learner_id = ${len(params)}", word_where]
        if needs_review is not None:
            params.append(needs_review)
            clauses.append(f"p.needs_review = ${len(params)}")
        where = " AND ".join(clauses)

        conn = await get_db_connection()
        try:
            rows = await conn.fetch(
                f"""SELECT {_JOINED_PROGRESS_COLUMNS}, {_JOINED_WORD_COLUMNS}
                    FROM progress p
                    LEFT JOIN words w ON w.id = p.item_id
                    WHERE {where}
                    ORDER BY p.needs_review DESC, p.mastery_score ASC, p.last_seen_at DESC NULLS LAST""",
                *params,
            )
            return [_progress_with_word(row) for row in rows]
        finally:
            await conn.close()

    async def get_seen_item_ids(self, learner_id: str) -> Set[str]:
        conn = await get_db_connection()
        try:
            rows = await conn.fetch("SELECT item_id FROM progress WHERE learner_id = $1", learner_id)
            return {str(row[0]) for row in rows}
        finally:
            await conn.close()

    async def get_activity_timestamps(self, learner_id: str, since: datetime) -> List[datetime]:
        """``last_seen_at`` of every progress row touched since ``since``, newest first."""
        conn = await get_db_connection()
        try:
            rows = await conn.fetch(
                """SELECT last_seen_at FROM progress
                   WHERE learner_id = $1 AND last_seen_at >= $2
                   ORDER BY last_seen_at DESC""",
                learner_id,
                since,
            )
            return [row[0] for row in rows if row[0] is not None]
        finally:
            await conn.close()

    async def has_progress_seen_since(self, learner_id: str, since: datetime) -> bool:
        conn = await get_db_connection()
        try:
            return bool(
                await conn.fetchval(
                    "SELECT EXISTS (SELECT 1 FROM progress WHERE learner_id = $1 AND last_seen_at >= $2)",
                    learner_id,
                    since,
                )
            )
        finally:
            await conn.close()

    async def has_quiz_attempt_since(self, learner_id: str, since: datetime, include_extra: bool = False) -> bool:
        sql = "SELECT EXISTS (SELECT 1 FROM quiz_attempts WHERE learner_id = $1 AND created_at >= $2"
        if not include_extra:
            sql += " AND is_extra = FALSE"
        sql += ")"
        conn = await get_db_connection()
        try:
            return bool(await conn.fetchval(sql, learner_id, since))
        finally:
            await conn.close()

    async def delete_learner_progress(self, learner_id: str) -> int:
        """Bulk reset: drop every progress row and quiz attempt of a learner."""
        conn = await get_db_connection()
        try:
            async with conn.transaction():
                await conn.execute("DELETE FROM quiz_attempts WHERE learner_id = $1", learner_id)
                result = await conn.execute("DELETE FROM progress WHERE learner_id = $1", learner_id)
            deleted = int(result.split()[-1]) if result else 0
            logger.info(f"Reset progress for learner {learner_id}: {deleted} rows removed")
            return deleted
        finally:
            await conn.close()


# Singleton instance
_progress_db_ops = None


def get_progress_db_operations() -> ProgressDBOperations:
    """Get singleton instance of ProgressDBOperations."""
    global _progress_db_ops
    if _progress_db_ops is None:
        _progress_db_ops = ProgressDBOperations()
    return _progress_db_ops
