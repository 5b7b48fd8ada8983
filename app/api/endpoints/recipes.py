from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schemas.common import envelope
from app.core.schemas.recipe import RecipeCreate, RecipeRead, RecipeSearch, RecipeUpdate
from app.database.base import get_db
from app.services.recipe_service import RecipeService

router = APIRouter()


def _split(value: str | None) -> list[str] | None:
    """Comma-separated query parameter -> list."""
    if not value:
        return None
    return [part for part in value.split(",") if part]


def search_params(
    query: str | None = None,
    classification_id: str | None = None,
    source_id: str | None = None,
    tags: str | None = None,
    meal_ids: str | None = None,
    course_ids: str | None = None,
    preparation_ids: str | None = None,
    is_private: bool | None = None,
    user_id: str | None = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> RecipeSearch:
    return RecipeSearch(
        query=query,
        classification_id=classification_id,
        source_id=source_id,
        tags=_split(tags),
        meal_ids=_split(meal_ids),
        course_ids=_split(course_ids),
        preparation_ids=_split(preparation_ids),
        is_private=is_private,
        user_id=user_id,
        limit=limit,
        offset=offset,
    )


@router.get("/")
async def list_recipes(
    params: RecipeSearch = Depends(search_params),
    db: AsyncSession = Depends(get_db),
):
    recipes = await RecipeService(db).search_recipes(params)
    return envelope([RecipeRead.from_recipe(r) for r in recipes], "Recipes retrieved successfully")


@router.get("/public")
async def list_public_recipes(
    params: RecipeSearch = Depends(search_params),
    db: AsyncSession = Depends(get_db),
):
    params = params.model_copy(update={"is_private": False, "user_id": None})
    recipes = await RecipeService(db).search_recipes(params)
    return envelope([RecipeRead.from_recipe(r) for r in recipes], "Public recipes retrieved successfully")


@router.get("/search")
async def search_recipes(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    recipes = await RecipeService(db).repository.search_public(q, limit=limit, offset=offset)
    return envelope(
        [RecipeRead.from_recipe(r) for r in recipes],
        f"Found {len(recipes)} recipes matching '{q}'",
        query=q,
    )


@router.post("/", status_code=201)
async def create_recipe(payload: RecipeCreate, db: AsyncSession = Depends(get_db)):
    try:
        recipe = await RecipeService(db).create_recipe(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return envelope(RecipeRead.from_recipe(recipe), "Recipe created successfully")


@router.get("/{recipe_id}")
async def get_recipe(recipe_id: str, db: AsyncSession = Depends(get_db)):
    recipe = await RecipeService(db).repository.get_with_links(recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return envelope(RecipeRead.from_recipe(recipe), "Recipe retrieved successfully")


@router.put("/{recipe_id}")
async def update_recipe(recipe_id: str, payload: RecipeUpdate, db: AsyncSession = Depends(get_db)):
    try:
        recipe = await RecipeService(db).update_recipe(recipe_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return envelope(RecipeRead.from_recipe(recipe), "Recipe updated successfully")


@router.delete("/{recipe_id}")
async def delete_recipe(recipe_id: str, db: AsyncSession = Depends(get_db)):
    if not await RecipeService(db).delete_recipe(recipe_id):
        raise HTTPException(status_code=404, detail="Recipe not found")
    return envelope(message="Recipe deleted successfully")
