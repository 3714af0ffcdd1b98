#!/usr/bin/env python3
"""
KidVocab Database Initialization
================================

Applies scripts/init_db.sql when any of the vocabulary tables are missing.
The schema uses IF NOT EXISTS throughout, so running it twice is harmless.

Usage:
    DATABASE_URL=postgresql://... python scripts/init_database.py
"""

import asyncio
import sys

from kidvocab.core.database import (
    ESSENTIAL_TABLES,
    check_table_exists,
    ensure_tables_exist,
    get_db_connection,
)


async def report_tables(conn) -> list:
    """Print a row count per table and return the ones that are missing."""
    missing = []
    for table in ESSENTIAL_TABLES:
        if await check_table_exists(conn, table):
            count = await conn.fetchval(f"SELECT COUNT(*) FROM {table}")
            print(f"✅ {table}: {count:,} rows")
        else:
            print(f"❌ {table}: MISSING")
            missing.append(table)
    return missing


async def init_database() -> bool:
    print("🚀 KidVocab Database Initialization")
    print("=" * 50)

    try:
        conn = await get_db_connection()
        try:
            print("🔍 Checking existing tables...")
            missing = await report_tables(conn)
        finally:
            await conn.close()

        if not missing:
            print("\n🎉 All tables exist! Database is ready.")
            return True

        print(f"\n🔧 Applying schema for {len(missing)} missing tables...")
        await ensure_tables_exist()

        conn = await get_db_connection()
        try:
            print("\n🔍 Verifying table creation...")
            still_missing = await report_tables(conn)
        finally:
            await conn.close()

        if still_missing:
            print(f"\n❌ Tables still missing: {', '.join(still_missing)}")
            return False

        print("\n🎉 Database initialization complete!")
        return True

    except Exception as e:
        print(f"❌ Database initialization failed: {e}")
        return False


async def main():
    if not await init_database():
        print("\n❌ Initialization failed!")
        sys.exit(1)
    print("\n✅ Ready. Start the API with: uvicorn kidvocab.interfaces.api.app:app")


if __name__ == "__main__":
    asyncio.run(main())
