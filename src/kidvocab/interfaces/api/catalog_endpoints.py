"""
Catalog endpoints: words, categories and letters
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from kidvocab.interfaces.api.schemas import WordCreateRequest, WordUpdateRequest
from kidvocab.modules.catalog.db_operations import get_catalog_db_operations

catalog_router = APIRouter(prefix="/catalog", tags=["catalog"])


@catalog_router.get("/words")
async def get_words(level: Optional[int] = Query(None, ge=1), category: Optional[str] = None):
    catalog = get_catalog_db_operations()
    if category:
        return await catalog.get_words_by_category(category, level)
    return await catalog.get_all_words(level)


@catalog_router.get("/words/{word_id}")
async def get_word(word_id: str):
    word = await get_catalog_db_operations().get_word(word_id)
    if word is None:
        raise HTTPException(status_code=404, detail="Word not found")
    return word


@catalog_router.post("/words", status_code=201)
async def create_word(request: WordCreateRequest):
    fields = request.model_dump(exclude_none=True)
    return await get_catalog_db_operations().create_word(**fields)


@catalog_router.patch("/words/{word_id}")
async def update_word(word_id: str, request: WordUpdateRequest):
    return await get_catalog_db_operations().update_word(word_id, **request.changes())


@catalog_router.get("/categories")
async def get_all_categories():
    return await get_catalog_db_operations().get_all_categories()


@catalog_router.get("/categories/counts")
async def get_category_counts(level: Optional[int] = Query(None, ge=1)):
    return await get_catalog_db_operations().get_category_counts(level)


@catalog_router.get("/letters")
async def get_all_letters():
    return await get_catalog_db_operations().get_all_letters()


@catalog_router.delete("/words/{word_id}")
async def deactivate_word(word_id: str):
    return await get_catalog_db_operations().deactivate_word(word_id)


@catalog_router.get("/letters/{letter_id}")
async def get_letter(letter_id: str):
    letter = await get_catalog_db_operations().get_letter(letter_id)
    if letter is None:
        raise HTTPException(status_code=404, detail="Letter not found")
    return letter
