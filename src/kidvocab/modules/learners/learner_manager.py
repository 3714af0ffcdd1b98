"""
Learner Manager
===============

Account and learner-profile operations: listing, creating and switching the
active learner. Every operation checks that the learner belongs to the
account it is called for.
"""

import logging
from typing import List, Optional

from kidvocab.core.exceptions import NotFoundError, OwnershipError
from kidvocab.core.signals import InvalidationBus, get_invalidation_bus
from kidvocab.modules.leveling.leveling_engine import LevelingEngine, get_leveling_engine

from .db_operations import AccountDBOperations, get_account_db_operations
from .models import Child, ParentAccount

logger = logging.getLogger(__name__)


class LearnerManager:
    def __init__(
        self,
        db_ops: Optional[AccountDBOperations] = None,
        leveling: Optional[LevelingEngine] = None,
        bus: Optional[InvalidationBus] = None,
    ):
        self.db_ops = db_ops or get_account_db_operations()
        self.leveling = leveling or get_leveling_engine()
        self.bus = bus or get_invalidation_bus()

    async def get_account(self, account_id: str) -> ParentAccount:
        account = await self.db_ops.get_account(account_id)
        if account is None:
            raise NotFoundError("Parent account not found")
        return account

    async def get_child(self, child_id: str) -> Child:
        child = await self.db_ops.get_child(child_id)
        if child is None:
            raise NotFoundError("Child not found")
        return child

    async def get_owned_child(self, account_id: str, child_id: str) -> Child:
        child = await self.get_child(child_id)
        if child.parent_account_id != account_id:
            raise OwnershipError(f"Child {child_id} does not belong to account {account_id}")
        return child

    async def get_all_children(self, account_id: str) -> List[Child]:
        return await self.db_ops.list_children(account_id)

    async def create_child(
        self,
        account_id: str,
        name: str,
        avatar: Optional[str] = None,
        age: Optional[int] = None,
        grade: Optional[str] = None,
    ) -> Child:
        """Create a learner; the first learner of an account becomes its active one."""
        account = await self.get_account(account_id)
        child = await self.db_ops.create_child(account_id, name, avatar=avatar, age=age, grade=grade)
        logger.info("Created child %s for account %s", child.id, account_id)

        if not account.last_active_child_id:
            await self.db_ops.set_last_active_child(account_id, child.id)

        await self.leveling.get_level_state(child.id)
        self.bus.invalidate("/parent")
        return child

    async def update_child(self, account_id: str, child_id: str, **changes) -> Child:
        await self.get_owned_child(account_id, child_id)
        child = await self.db_ops.update_child(child_id, **changes)
        if child is None:
            raise NotFoundError("Child not found")
        self.bus.invalidate("/parent")
        return child

    async def delete_child(self, account_id: str, child_id: str) -> None:
        await self.get_owned_child(account_id, child_id)
        await self.db_ops.delete_child(child_id)
        logger.info("Deleted child %s of account %s", child_id, account_id)
        self.bus.invalidate("/parent")

    async def get_active_child(self, account_id: str) -> Optional[Child]:
        account = await self.db_ops.get_account(account_id)
        if account is None or not account.last_active_child_id:
            return None
        return await self.db_ops.get_child(account.last_active_child_id)

    async def set_active_child(self, account_id: str, child_id: str) -> Child:
        await self.get_account(account_id)
        child = await self.get_owned_child(account_id, child_id)
        await self.db_ops.set_last_active_child(account_id, child_id)
        self.bus.invalidate("/", "/learn", "/quiz", "/progress")
        return child


# Singleton instance
_learner_manager = None


def get_learner_manager() -> LearnerManager:
    global _learner_manager
    if _learner_manager is None:
        _learner_manager = LearnerManager()
    return _learner_manager
