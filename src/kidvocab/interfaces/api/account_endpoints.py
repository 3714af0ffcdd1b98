"""
Account endpoints: settings and learner profiles
"""

from typing import Any, Dict

from fastapi import APIRouter

from kidvocab.interfaces.api.schemas import ChildCreateRequest, ChildUpdateRequest
from kidvocab.modules.learners.learner_manager import get_learner_manager
from kidvocab.modules.preferences.settings_resolver import get_settings_resolver

account_router = APIRouter(prefix="/accounts/{account_id}", tags=["accounts"])


@account_router.get("/settings")
async def get_app_settings(account_id: str):
    settings = await get_settings_resolver().get_app_settings(account_id)
    return settings.to_json_dict()


@account_router.patch("/settings")
async def update_app_settings(account_id: str, changes: Dict[str, Any]):
    settings = await get_settings_resolver().update_app_settings(account_id, changes)
    return settings.to_json_dict()


@account_router.get("/children")
async def get_all_children(account_id: str):
    return await get_learner_manager().get_all_children(account_id)


@account_router.post("/children", status_code=201)
async def create_child(account_id: str, request: ChildCreateRequest):
    return await get_learner_manager().create_child(account_id, **request.model_dump())


@account_router.patch("/children/{child_id}")
async def update_child(account_id: str, child_id: str, request: ChildUpdateRequest):
    changes = request.model_dump(exclude_unset=True)
    return await get_learner_manager().update_child(account_id, child_id, **changes)


@account_router.delete("/children/{child_id}", status_code=204)
async def delete_child(account_id: str, child_id: str):
    await get_learner_manager().delete_child(account_id, child_id)


@account_router.get("/active-child")
async def get_active_child(account_id: str):
    return {"child": await get_learner_manager().get_active_child(account_id)}


@account_router.put("/active-child/{child_id}")
async def set_active_child(account_id: str, child_id: str):
    return await get_learner_manager().set_active_child(account_id, child_id)
