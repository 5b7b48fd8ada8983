"""
CRUD routes for the five lookup tables.

The tables share one shape, so one router factory serves all of them.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schemas.common import envelope
from app.core.schemas.metadata import MetadataCreate, MetadataRead, MetadataUpdate
from app.database.base import get_db
from app.database.models import (
    Classification,
    Course,
    Meal,
    Preparation,
    Recipe,
    RecipeCourse,
    RecipeMeal,
    RecipePreparation,
    Source,
)
from app.services.repositories.base import BaseRepository


def build_router(model, label: str, usage_column) -> APIRouter:
    """
    Args:
        model: Lookup model class
        label: Singular display name, e.g. "Classification"
        usage_column: Column whose references block deletion
    """
    router = APIRouter()
    plural = model.__tablename__

    @router.get("/")
    async def list_items(db: AsyncSession = Depends(get_db)):
        items = await BaseRepository(db, model).get_all(limit=1000, order_by=model.name)
        return envelope(
            [MetadataRead.model_validate(item) for item in items],
            f"{plural.capitalize()} retrieved successfully",
        )

    @router.post("/", status_code=201)
    async def create_item(payload: MetadataCreate, db: AsyncSession = Depends(get_db)):
        item = await BaseRepository(db, model).create(model(**payload.model_dump()))
        return envelope(MetadataRead.model_validate(item), f"{label} created successfully")

    @router.get("/{item_id}")
    async def get_item(item_id: str, db: AsyncSession = Depends(get_db)):
        item = await BaseRepository(db, model).get_by_id(item_id)
        if not item:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return envelope(MetadataRead.model_validate(item), f"{label} retrieved successfully")

    @router.put("/{item_id}")
    async def update_item(item_id: str, payload: MetadataUpdate, db: AsyncSession = Depends(get_db)):
        item = await BaseRepository(db, model).update(item_id, payload.model_dump(exclude_unset=True))
        if not item:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return envelope(MetadataRead.model_validate(item), f"{label} updated successfully")

    @router.delete("/{item_id}")
    async def delete_item(item_id: str, db: AsyncSession = Depends(get_db)):
        repository = BaseRepository(db, model)
        if not await repository.exists(item_id):
            raise HTTPException(status_code=404, detail=f"{label} not found")

        in_use = await db.scalar(select(func.count()).where(usage_column == item_id))
        if in_use:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot delete {label.lower()}. It is being used by {in_use} recipe(s).",
            )

        await repository.delete(item_id)
        return envelope(message=f"{label} deleted successfully")

    return router


classifications = build_router(Classification, "Classification", Recipe.classification_id)
sources = build_router(Source, "Source", Recipe.source_id)
meals = build_router(Meal, "Meal", RecipeMeal.meal_id)
courses = build_router(Course, "Course", RecipeCourse.course_id)
preparations = build_router(Preparation, "Preparation", RecipePreparation.preparation_id)
