"""
Database connection management for the PostgreSQL store
"""

import asyncio
import logging
from functools import lru_cache
from pathlib import Path
from typing import List

import asyncpg

from kidvocab.settings import get_settings

# Global flag to track if setup has been done
_setup_done = False

SCHEMA_SCRIPT = Path(__file__).resolve().parents[3] / "scripts" / "init_db.sql"

ESSENTIAL_TABLES: List[str] = [
    "parent_accounts",
    "children",
    "words",
    "letters",
    "progress",
    "quiz_attempts",
    "letter_progress",
    "level_states",
    "mission_states",
    "daily_plans",
    "daily_plan_words",
]

logger = logging.getLogger(__name__)


@lru_cache
def get_database_url() -> str:
    """Get the PostgreSQL database URL from settings."""
    database_url = get_settings().DATABASE_URL
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")
    return database_url


async def get_db_connection():
    """Get a database connection using asyncpg."""
    database_url = get_database_url()
    return await asyncpg.connect(database_url, timeout=get_settings().DB_CONNECT_TIMEOUT)


async def execute_sql_script(script_path: str):
    """Execute a SQL script file against the database."""
    script_file = Path(script_path)
    if not script_file.exists():
        raise FileNotFoundError(f"SQL script not found: {script_path}")

    sql_content = script_file.read_text(encoding="utf-8")

    conn = await get_db_connection()
    try:
        await conn.execute(sql_content)
        logger.info("SQL script executed successfully: %s", script_path)
    except Exception as e:
        logger.error("Error executing SQL script %s: %s", script_path, e)
        raise
    finally:
        await conn.close()


async def check_table_exists(conn, table_name: str) -> bool:
    """Check if a table exists in the database."""
    return await conn.fetchval(
        "SELECT EXISTS (SELECT FROM information_schema.tables WHERE table_name = $1)", table_name
    )


async def ensure_tables_exist():
    """Ensure PostgreSQL tables exist (run setup once)."""
    global _setup_done
    if not _setup_done:
        await execute_sql_script(str(SCHEMA_SCRIPT))
        _setup_done = True


async def test_database_connection() -> bool:
    """Test that the database is reachable."""
    try:
        conn = await get_db_connection()
        try:
            await conn.fetchval("SELECT 1")
        finally:
            await conn.close()
        logger.info("PostgreSQL connection successful")
        return True
    except Exception as e:
        logger.error("PostgreSQL connection failed: %s", e)
        return False


if __name__ == "__main__":
    asyncio.run(test_database_connection())
