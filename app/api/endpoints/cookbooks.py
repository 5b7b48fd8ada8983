from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schemas.common import envelope
from app.core.schemas.cookbook import (
    CookbookAddRecipes,
    CookbookCreate,
    CookbookRead,
    CookbookReorderRecipes,
    CookbookUpdate,
)
from app.database.base import get_db
from app.services.cookbook_service import CookbookService

router = APIRouter()


@router.get("/")
async def list_cookbooks(
    user_id: str | None = None,
    is_private: bool | None = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    cookbooks = await CookbookService(db).list_cookbooks(user_id, is_private, limit, offset)
    return envelope(
        [CookbookRead.from_cookbook(c) for c in cookbooks],
        "Cookbooks retrieved successfully",
    )


@router.post("/", status_code=201)
async def create_cookbook(payload: CookbookCreate, db: AsyncSession = Depends(get_db)):
    try:
        cookbook = await CookbookService(db).create_cookbook(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return envelope(CookbookRead.from_cookbook(cookbook), "Cookbook created successfully")


@router.get("/{cookbook_id}")
async def get_cookbook(cookbook_id: str, db: AsyncSession = Depends(get_db)):
    cookbook = await CookbookService(db).get_cookbook(cookbook_id)
    if not cookbook:
        raise HTTPException(status_code=404, detail="Cookbook not found")
    return envelope(CookbookRead.from_cookbook(cookbook), "Cookbook retrieved successfully")


@router.put("/{cookbook_id}")
async def update_cookbook(cookbook_id: str, payload: CookbookUpdate, db: AsyncSession = Depends(get_db)):
    cookbook = await CookbookService(db).update_cookbook(cookbook_id, payload)
    if not cookbook:
        raise HTTPException(status_code=404, detail="Cookbook not found")
    return envelope(CookbookRead.from_cookbook(cookbook), "Cookbook updated successfully")


@router.delete("/{cookbook_id}")
async def delete_cookbook(cookbook_id: str, db: AsyncSession = Depends(get_db)):
    if not await CookbookService(db).delete_cookbook(cookbook_id):
        raise HTTPException(status_code=404, detail="Cookbook not found")
    return envelope(message="Cookbook deleted successfully")


@router.post("/{cookbook_id}/recipes")
async def add_recipes(cookbook_id: str, payload: CookbookAddRecipes, db: AsyncSession = Depends(get_db)):
    try:
        cookbook, added = await CookbookService(db).add_recipes(cookbook_id, payload.recipe_ids)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    requested = len(set(payload.recipe_ids))
    return envelope(
        CookbookRead.from_cookbook(cookbook),
        f"Added {added} recipes to cookbook",
        added_count=added,
        skipped_count=requested - added,
    )


@router.put("/{cookbook_id}/recipes")
async def reorder_recipes(
    cookbook_id: str,
    payload: CookbookReorderRecipes,
    db: AsyncSession = Depends(get_db),
):
    try:
        cookbook = await CookbookService(db).reorder_recipes(cookbook_id, payload.recipe_order)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return envelope(CookbookRead.from_cookbook(cookbook), "Recipe order updated successfully")


@router.delete("/{cookbook_id}/recipes/{recipe_id}")
async def remove_recipe(cookbook_id: str, recipe_id: str, db: AsyncSession = Depends(get_db)):
    try:
        cookbook = await CookbookService(db).remove_recipe(cookbook_id, recipe_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return envelope(CookbookRead.from_cookbook(cookbook), "Recipe removed from cookbook successfully")
