"""
Database Operations for Accounts and Learner Profiles
"""

import logging
from typing import Any, List, Optional

from kidvocab.core.database import get_db_connection

from .models import Child, ParentAccount

logger = logging.getLogger(__name__)

ACCOUNT_COLUMNS = "id, settings_json, last_active_child_id"
CHILD_COLUMNS = "id, parent_account_id, name, avatar, age, grade, created_at"
EDITABLE_CHILD_FIELDS = ("name", "avatar", "age", "grade")


class AccountDBOperations:
    async def get_account(self, account_id: str) -> Optional[ParentAccount]:
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(f"SELECT {ACCOUNT_COLUMNS} FROM parent_accounts WHERE id = $1", account_id)
            return ParentAccount.from_record(row) if row else None
        finally:
            await conn.close()

    async def update_settings_json(self, account_id: str, settings_json: str) -> None:
        conn = await get_db_connection()
        try:
            await conn.execute("UPDATE parent_accounts SET settings_json = $2 WHERE id = $1", account_id, settings_json)
        finally:
            await conn.close()

    async def set_last_active_child(self, account_id: str, child_id: str) -> None:
        conn = await get_db_connection()
        try:
            await conn.execute(
                "UPDATE parent_accounts SET last_active_child_id = $2 WHERE id = $1", account_id, child_id
            )
        finally:
            await conn.close()

    async def get_child(self, child_id: str) -> Optional[Child]:
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(f"SELECT {CHILD_COLUMNS} FROM children WHERE id = $1", child_id)
            return Child.from_record(row) if row else None
        finally:
            await conn.close()

    async def list_children(self, account_id: str) -> List[Child]:
        conn = await get_db_connection()
        try:
            rows = await conn.fetch(
                f"SELECT {CHILD_COLUMNS} FROM children WHERE parent_account_id = $1 ORDER BY created_at DESC",
                account_id,
            )
            return [Child.from_record(row) for row in rows]
        finally:
            await conn.close()

    async def create_child(self, account_id: str, name: str, **fields: Any) -> Child:
        unknown = set(fields) - set(EDITABLE_CHILD_FIELDS)
        if unknown:
            raise ValueError(f"Unknown child fields: {sorted(unknown)}")
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                f"""INSERT INTO children (parent_account_id, name, avatar, age, grade)
                    VALUES ($1, $2, $3, $4, $5)
                    RETURNING {CHILD_COLUMNS}""",
                account_id,
                name,
                fields.get("avatar"),
                fields.get("age"),
                fields.get("grade"),
            )
            return Child.from_record(row)
        finally:
            await conn.close()

    async def update_child(self, child_id: str, **changes: Any) -> Optional[Child]:
        unknown = set(changes) - set(EDITABLE_CHILD_FIELDS)
        if unknown:
            raise ValueError(f"Unknown child fields: {sorted(unknown)}")
        if not changes:
            return await self.get_child(child_id)

        assignments = ", ".join(f"{name} = ${i}" for i, name in enumerate(changes, start=2))
        conn = await get_db_connection()
        try:
            row = await conn.fetchrow(
                f"UPDATE children SET {assignments} WHERE id = $1 RETURNING {CHILD_COLUMNS}",
                child_id,
                *changes.values(),
            )
            return Child.from_record(row) if row else None
        finally:
            await conn.close()

    async def delete_child(self, child_id: str) -> bool:
        conn = await get_db_connection()
        try:
            result = await conn.execute("DELETE FROM children WHERE id = $1", child_id)
            return result == "DELETE 1"
        finally:
            await conn.close()


# Singleton instance
_account_db_ops = None


def get_account_db_operations() -> AccountDBOperations:
    global _account_db_ops
    if _account_db_ops is None:
        _account_db_ops = AccountDBOperations()
    return _account_db_ops
