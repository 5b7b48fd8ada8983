"""
Recipe repository implementing clean data access patterns.
Provides the filtered listing and free-text search used by the recipe routes.
"""
from typing import List, Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.schemas.recipe import RecipeSearch
from app.database.models import (
    Classification,
    Recipe,
    RecipeCourse,
    RecipeMeal,
    RecipePreparation,
    Source,
    User,
)
from app.services.repositories.base import BaseRepository

# Links needed to render a recipe
RECIPE_LOAD_OPTIONS = [
    selectinload(Recipe.meals),
    selectinload(Recipe.courses),
    selectinload(Recipe.preparations),
]


class RecipeRepository(BaseRepository[Recipe]):
    """Repository for recipe data access."""

    def __init__(self, db_session: AsyncSession):
        super().__init__(db_session, Recipe)

    async def get_with_links(self, recipe_id: str) -> Optional[Recipe]:
        return await self.get_by_id(recipe_id, options=RECIPE_LOAD_OPTIONS)

    async def search_recipes(self, params: RecipeSearch) -> List[Recipe]:
        """
        Filtered recipe listing, newest first.

        Text matches are plain substring matches on name, ingredients and
        instructions; tags match as substrings of the stored JSON array.
        Meal, course and preparation filters keep recipes linked to any of
        the given ids.

        Args:
            params: Validated search parameters

        Returns:
            List of matching recipes with their links loaded
        """
        stmt = select(Recipe).options(*RECIPE_LOAD_OPTIONS)
        conditions = []

        if params.user_id:
            conditions.append(Recipe.user_id == params.user_id)
        if params.is_private is not None:
            conditions.append(Recipe.is_private == params.is_private)
        if params.classification_id:
            conditions.append(Recipe.classification_id == params.classification_id)
        if params.source_id:
            conditions.append(Recipe.source_id == params.source_id)

        text_conditions = []
        if params.query:
            pattern = f"%{params.query}%"
            text_conditions.extend([
                Recipe.name.ilike(pattern),
                Recipe.ingredients.ilike(pattern),
                Recipe.instructions.ilike(pattern),
            ])
        for tag in params.tags or []:
            text_conditions.append(Recipe.tags.contains(tag))
        if text_conditions:
            conditions.append(or_(*text_conditions))

        if params.meal_ids:
            conditions.append(Recipe.meals.any(RecipeMeal.meal_id.in_(params.meal_ids)))
        if params.course_ids:
            conditions.append(Recipe.courses.any(RecipeCourse.course_id.in_(params.course_ids)))
        if params.preparation_ids:
            conditions.append(
                Recipe.preparations.any(RecipePreparation.preparation_id.in_(params.preparation_ids))
            )

        if conditions:
            stmt = stmt.where(*conditions)

        stmt = stmt.order_by(Recipe.created_at.desc()).offset(params.offset).limit(params.limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def search_public(self, query: str, limit: int = 20, offset: int = 0) -> List[Recipe]:
        """
        Search public recipes across recipe text, tags and the names of the
        owner, source and classification.
        """
        pattern = f"%{query}%"
        stmt = (
            select(Recipe)
            .options(*RECIPE_LOAD_OPTIONS)
            .outerjoin(User, Recipe.user_id == User.id)
            .outerjoin(Source, Recipe.source_id == Source.id)
            .outerjoin(Classification, Recipe.classification_id == Classification.id)
            .where(
                Recipe.is_private.is_(False),
                or_(
                    Recipe.name.ilike(pattern),
                    Recipe.ingredients.ilike(pattern),
                    Recipe.instructions.ilike(pattern),
                    Recipe.tags.ilike(pattern),
                    User.name.ilike(pattern),
                    Source.name.ilike(pattern),
                    Classification.name.ilike(pattern),
                ),
            )
            .order_by(Recipe.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
