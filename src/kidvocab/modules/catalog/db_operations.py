"""
Database Operations for the Word/Letter Catalog
===============================================

Read-mostly queries over the ``words`` and ``letters`` tables.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import asyncpg

from kidvocab.core.database import get_db_connection
from kidvocab.core.exceptions import NotFoundError

from .models import Letter, Word, difficulty_filter_for_level

logger = logging.getLogger(__name__)

WORD_COLUMNS = (
    "id, english_word, translation, category, difficulty, active, "
    "image_url, audio_url, example_en, example_translation"
)

EDITABLE_WORD_FIELDS = (
    "english_word",
    "translation",
    "category",
    "difficulty",
    "active",
    "image_url",
    "audio_url",
    "example_en",
    "example_translation",
)


def build_word_filter(
    *,
    active_only: bool = True,
    difficulty: Optional[int] = None,
    level: Optional[int] = None,
    category: Optional[str] = None,
    categories: Optional[Iterable[str]] = None,
    exclude_ids: Optional[Iterable[str]] = None,
    alias: str = "",
) -> Tuple[str, List[Any]]:
    """Build a WHERE clause and its positional parameters for the words table.

    ``difficulty`` is an exact tier; ``level`` is a learner level mapped
    through ``difficulty_filter_for_level``. Both may be combined. ``alias``
    qualifies the columns when the words table is joined.
    """
    prefix = f"{alias}." if alias else ""
    clauses: List[str] = []
    params: List[Any] = []

    def add(clause: str, value: Any) -> None:
        params.append(value)
        clauses.append(clause.format(n=len(params)))

    if active_only:
        clauses.append(f"{prefix}active = TRUE")
    if difficulty is not None:
        add(prefix + "difficulty = ${n}", difficulty)
    tier = difficulty_filter_for_level(level)
    if tier is not None:
        operator, value = tier
        add(prefix + "difficulty " + operator + " ${n}", value)
    if category is not None:
        add(prefix + "category = ${n}", category)
    if categories is not None:
        add(prefix + "category = ANY(${n}::text[])", list(categories))
    if exclude_ids:
        add("NOT (" + prefix + "id = ANY(${n}::text[]))", list(exclude_ids))

    where = " AND ".join(clauses) if clauses else "TRUE"
    return where, params


class CatalogDBOperations:
    """Database operations for words and letters."""

    async def find_words(
        self,
        *,
        active_only: bool = True,
        difficulty: Optional[int] = None,
        level: Optional[int] = None,
        category: Optional[str] = None,
        categories: Optional[Iterable[str]] = None,
        exclude_ids: Optional[Iterable[str]] = None,
        limit: Optional[int] = None,
        order_by: str = "category, english_word",
    ) -> List[Word]:
        """Filtered word query shared by progress and plan generation."""
        where, params = build_word_filter(
            active_only=active_only,
            difficulty=difficulty,
            level=level,
            category=category,
            categories=categories,
            exclude_ids=exclude_ids,
        )
        sql = f"SELECT {WORD_COLUMNS} FROM words WHERE {where} ORDER BY {order_by}"
        if limit is not None:
            params.append(limit)
            sql += f" LIMIT ${len(params)}"

        conn = await get_db_connection()
        try:
            rows = await conn.fetch(sql, *params)
            return [Word.from_record(row) for row in rows]
        finally:
            await conn.close()

    async def get_all_words(self, level: Optional[int] = None) -> List[Word]:
        return await self.find_words(level=level)

    async def get_words_by_category(self, category: str, level: Optional[int] = None) -> List[Word]:
        return await self.find_words(category=category, level=level, order_by="english_word")

    async def get_word(self, word_id: str) -> Optional[Word]:
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(f"SELECT {WORD_COLUMNS} FROM words WHERE id = $1", word_id)
            return Word.from_record(row) if row else None
        finally:
            await conn.close()

    async def get_all_categories(self) -> List[str]:
        conn = await get_db_connection()
        try:
            rows = await conn.fetch("SELECT DISTINCT category FROM words WHERE active = TRUE ORDER BY category")
            return [row[0] for row in rows if row[0]]
        finally:
            await conn.close()

    async def get_category_counts(self, level: Optional[int] = None) -> Dict[str, int]:
        """Number of active words per category, optionally for one learner level."""
        where, params = build_word_filter(level=level)
        conn = await get_db_connection()
        try:
            rows = await conn.fetch(
                f"SELECT category, COUNT(*) AS word_count FROM words WHERE {where} GROUP BY category ORDER BY category",
                *params,
            )
            return {row["category"]: row["word_count"] for row in rows}
        finally:
            await conn.close()

    async def create_word(
        self,
        english_word: str,
        translation: str,
        category: str,
        difficulty: int = 1,
        **extra: Any,
    ) -> Word:
        unknown = set(extra) - set(EDITABLE_WORD_FIELDS)
        if unknown:
            raise ValueError(f"Unknown word fields: {sorted(unknown)}")

        fields = {
            "english_word": english_word,
            "translation": translation,
            "category": category,
            "difficulty": difficulty or 1,
            "active": True,
            **extra,
        }
        columns = ", ".join(fields)
        placeholders = ", ".join(f"${i}" for i in range(1, len(fields) + 1))

        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                f"INSERT INTO words ({columns}) VALUES ({placeholders}) RETURNING {WORD_COLUMNS}",
                *fields.values(),
            )
            logger.info("Created word %s (%s)", row["id"], english_word)
            return Word.from_record(row)
        finally:
            await conn.close()

    async def update_word(self, word_id: str, **changes: Any) -> Word:
        unknown = set(changes) - set(EDITABLE_WORD_FIELDS)
        if unknown:
            raise ValueError(f"Unknown word fields: {sorted(unknown)}")
        if not changes:
            word = await self.get_word(word_id)
            if word is None:
                raise NotFoundError("Word not found")
            return word

        assignments = ", ".join(f"{name} = ${i}" for i, name in enumerate(changes, start=2))
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                f"UPDATE words SET {assignments} WHERE id = $1 RETURNING {WORD_COLUMNS}",
                word_id,
                *changes.values(),
            )
            if row is None:
                raise NotFoundError("Word not found")
            return Word.from_record(row)
        finally:
            await conn.close()

    async def deactivate_word(self, word_id: str) -> Word:
        return await self.update_word(word_id, active=False)

    async def get_all_letters(self) -> List[Letter]:
        """Active letters in teaching order; empty when the letters table is not there yet."""
        conn = await get_db_connection()
        try:
            rows = await conn.fetch(
                'SELECT id, letter, name, "order", active FROM letters WHERE active = TRUE ORDER BY "order"'
            )
            return [Letter.from_record(row) for row in rows]
        except asyncpg.exceptions.UndefinedTableError as e:
            logger.warning(f"Letters table unavailable, returning no letters: {e}")
            return []
        finally:
            await conn.close()

    async def get_letter(self, letter_id: str) -> Optional[Letter]:
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow('SELECT id, letter, name, "order", active FROM letters WHERE id = $1', letter_id)
            return Letter.from_record(row) if row else None
        finally:
            await conn.close()


# Singleton instance
_catalog_db_ops = None


def get_catalog_db_operations() -> CatalogDBOperations:
    """Get singleton instance of CatalogDBOperations."""
    global _catalog_db_ops
    if _catalog_db_ops is None:
        _catalog_db_ops = CatalogDBOperations()
    return _catalog_db_ops
