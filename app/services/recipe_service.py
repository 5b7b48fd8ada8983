from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schemas.recipe import RecipeCreate, RecipeSearch, RecipeUpdate
from app.database.models import (
    Classification,
    CookbookRecipe,
    Course,
    Meal,
    Preparation,
    Recipe,
    RecipeCourse,
    RecipeMeal,
    RecipePreparation,
    Source,
    User,
)
from app.services.cookbook_service import CookbookService
from app.services.repositories.recipe_repository import RecipeRepository

# payload field -> (recipe attribute, join model, lookup model, join column)
LINKS = {
    "meal_ids": ("meals", RecipeMeal, Meal, "meal_id"),
    "course_ids": ("courses", RecipeCourse, Course, "course_id"),
    "preparation_ids": ("preparations", RecipePreparation, Preparation, "preparation_id"),
}

SCALAR_FIELDS = (
    "name",
    "ingredients",
    "instructions",
    "notes",
    "servings",
    "source_id",
    "classification_id",
    "calories",
    "fat",
    "cholesterol",
    "sodium",
    "protein",
    "marked",
    "is_private",
)


class RecipeService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = RecipeRepository(db)

    async def _ensure_exists(self, model, ids: list[str], label: str) -> None:
        if not ids:
            return
        found = await self.db.scalar(
            select(func.count()).select_from(model).where(model.id.in_(ids))
        )
        if found != len(ids):
            raise ValueError(f"One or more {label} not found")

    async def _validate_references(self, data: dict) -> None:
        if data.get("user_id") is not None:
            await self._ensure_exists(User, [data["user_id"]], "users")
        if data.get("source_id") is not None:
            await self._ensure_exists(Source, [data["source_id"]], "sources")
        if data.get("classification_id") is not None:
            await self._ensure_exists(Classification, [data["classification_id"]], "classifications")
        for field, (_, _, lookup, _) in LINKS.items():
            if data.get(field):
                await self._ensure_exists(lookup, data[field], lookup.__tablename__)

    async def _replace_links(self, recipe: Recipe, data: dict) -> None:
        for field, (attribute, join_model, _, column) in LINKS.items():
            if data.get(field) is None:
                continue
            collection = getattr(recipe, attribute)
            if collection:
                # clear first so the unique (recipe, lookup) pairs can be re-inserted
                collection.clear()
                await self.db.flush()
            for lookup_id in data[field]:
                collection.append(join_model(**{column: lookup_id}))

    async def create_recipe(self, payload: RecipeCreate) -> Recipe:
        """Create a recipe with its meal, course and preparation links."""
        data = payload.model_dump()
        for field in LINKS:
            data[field] = list(dict.fromkeys(data[field]))
        await self._validate_references(data)

        recipe = Recipe(
            user_id=data["user_id"],
            tags=Recipe.encode_tags(data["tags"]),
            date_added=datetime.utcnow(),
            meals=[],
            courses=[],
            preparations=[],
            **{name: data[name] for name in SCALAR_FIELDS},
        )
        await self._replace_links(recipe, data)

        self.db.add(recipe)
        await self.db.commit()
        return await self.repository.get_with_links(recipe.id)

    async def update_recipe(self, recipe_id: str, payload: RecipeUpdate) -> Recipe | None:
        """Apply the fields that were sent; link lists replace existing links."""
        recipe = await self.repository.get_with_links(recipe_id)
        if not recipe:
            return None

        data = payload.model_dump(exclude_unset=True)
        for field in LINKS:
            if data.get(field) is not None:
                data[field] = list(dict.fromkeys(data[field]))
        await self._validate_references(data)

        for name in SCALAR_FIELDS:
            if name in data:
                setattr(recipe, name, data[name])
        if data.get("tags") is not None:
            recipe.tags = Recipe.encode_tags(data["tags"])
        await self._replace_links(recipe, data)
        recipe.updated_at = datetime.utcnow()

        await self.db.commit()
        self.db.expire(recipe)
        return await self.repository.get_with_links(recipe_id)

    async def delete_recipe(self, recipe_id: str) -> bool:
        """Delete a recipe and close the gaps it leaves in cookbooks."""
        recipe = await self.repository.get_by_id(recipe_id)
        if not recipe:
            return False

        result = await self.db.execute(
            select(CookbookRecipe.cookbook_id).where(CookbookRecipe.recipe_id == recipe_id)
        )
        cookbook_ids = list(result.scalars().all())

        await self.db.delete(recipe)
        await self.db.flush()

        cookbooks = CookbookService(self.db)
        for cookbook_id in cookbook_ids:
            await cookbooks.renumber(cookbook_id)

        await self.db.commit()
        return True

    async def search_recipes(self, search_params: RecipeSearch) -> list[Recipe]:
        """Search recipes with filters."""
        return await self.repository.search_recipes(search_params)
