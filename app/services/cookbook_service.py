import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.schemas.cookbook import CookbookCreate, CookbookUpdate
from app.database.models import Cookbook, CookbookRecipe, Recipe, User

logger = logging.getLogger(__name__)


class CookbookService:
    """
    Cookbooks and the ordered list of recipes inside them.

    Entry positions are kept as 1..N within each cookbook: additions append
    after the last position, and removals and reorders renumber the rest.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_cookbook(self, cookbook_id: str) -> Cookbook | None:
        result = await self.db.execute(
            select(Cookbook)
            .options(selectinload(Cookbook.recipes))
            .where(Cookbook.id == cookbook_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_cookbooks(
        self,
        user_id: str | None = None,
        is_private: bool | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Cookbook]:
        query = select(Cookbook).options(selectinload(Cookbook.recipes))
        if user_id:
            query = query.where(Cookbook.user_id == user_id)
        if is_private is not None:
            query = query.where(Cookbook.is_private == is_private)
        query = query.order_by(Cookbook.created_at.desc()).offset(offset).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_cookbook(self, payload: CookbookCreate) -> Cookbook:
        if not await self.db.get(User, payload.user_id):
            raise ValueError("User not found")

        cookbook = Cookbook(
            user_id=payload.user_id,
            name=payload.name,
            description=payload.description,
            cover_image=str(payload.cover_image) if payload.cover_image else None,
            is_private=payload.is_private,
        )
        self.db.add(cookbook)
        await self.db.commit()
        return await self.get_cookbook(cookbook.id)

    async def update_cookbook(self, cookbook_id: str, payload: CookbookUpdate) -> Cookbook | None:
        cookbook = await self.db.get(Cookbook, cookbook_id)
        if not cookbook:
            return None

        data = payload.model_dump(exclude_unset=True)
        if "cover_image" in data:
            data["cover_image"] = str(data["cover_image"]) if data["cover_image"] else None
        for key, value in data.items():
            setattr(cookbook, key, value)
        cookbook.updated_at = datetime.utcnow()

        await self.db.commit()
        return await self.get_cookbook(cookbook_id)

    async def delete_cookbook(self, cookbook_id: str) -> bool:
        cookbook = await self.get_cookbook(cookbook_id)
        if not cookbook:
            return False
        await self.db.delete(cookbook)
        await self.db.commit()
        return True

    async def add_recipes(self, cookbook_id: str, recipe_ids: list[str]) -> tuple[Cookbook, int]:
        """
        Append recipes after the cookbook's last position.

        Returns:
            The updated cookbook and the number of recipes added

        Raises:
            LookupError: cookbook or one of the recipes does not exist
            ValueError: every recipe is already in the cookbook
        """
        cookbook = await self.get_cookbook(cookbook_id)
        if not cookbook:
            raise LookupError("Cookbook not found")

        requested = list(dict.fromkeys(recipe_ids))
        found = await self.db.scalar(
            select(func.count()).select_from(Recipe).where(Recipe.id.in_(requested))
        )
        if found != len(requested):
            raise LookupError("One or more recipes not found")

        existing = {entry.recipe_id for entry in cookbook.recipes}
        new_ids = [recipe_id for recipe_id in requested if recipe_id not in existing]
        if not new_ids:
            raise ValueError("All recipes are already in this cookbook")

        next_order = max((entry.order for entry in cookbook.recipes), default=0) + 1
        for offset, recipe_id in enumerate(new_ids):
            self.db.add(CookbookRecipe(cookbook_id=cookbook_id, recipe_id=recipe_id, order=next_order + offset))

        await self.db.commit()
        return await self.get_cookbook(cookbook_id), len(new_ids)

    async def reorder_recipes(self, cookbook_id: str, recipe_order: dict[str, int]) -> Cookbook:
        """
        Move recipes to the requested positions.

        Positions are then compacted to 1..N; ties keep the previous order.

        Raises:
            LookupError: cookbook does not exist
            ValueError: a recipe id is not in this cookbook
        """
        cookbook = await self.get_cookbook(cookbook_id)
        if not cookbook:
            raise LookupError("Cookbook not found")

        entries = {entry.recipe_id: entry for entry in cookbook.recipes}
        invalid = [recipe_id for recipe_id in recipe_order if recipe_id not in entries]
        if invalid:
            raise ValueError(f"Some recipes are not in this cookbook: {', '.join(invalid)}")

        previous = {recipe_id: entry.order for recipe_id, entry in entries.items()}
        for recipe_id, order in recipe_order.items():
            entries[recipe_id].order = order

        ranked = sorted(entries.values(), key=lambda e: (e.order, previous[e.recipe_id]))
        self._compact(ranked)

        await self.db.commit()
        return await self.get_cookbook(cookbook_id)

    async def remove_recipe(self, cookbook_id: str, recipe_id: str) -> Cookbook:
        """
        Remove a recipe from the cookbook and close the gap it leaves.

        Raises:
            LookupError: cookbook does not exist or does not contain the recipe
        """
        if not await self.db.get(Cookbook, cookbook_id):
            raise LookupError("Cookbook not found")

        result = await self.db.execute(
            select(CookbookRecipe).where(
                CookbookRecipe.cookbook_id == cookbook_id,
                CookbookRecipe.recipe_id == recipe_id,
            )
        )
        entry = result.scalar_one_or_none()
        if not entry:
            raise LookupError("Recipe not found in this cookbook")

        await self.db.delete(entry)
        await self.db.flush()
        await self.renumber(cookbook_id)

        await self.db.commit()
        return await self.get_cookbook(cookbook_id)

    async def renumber(self, cookbook_id: str) -> None:
        """Rewrite positions as 1..N, keeping their relative order. Does not commit."""
        result = await self.db.execute(
            select(CookbookRecipe)
            .where(CookbookRecipe.cookbook_id == cookbook_id)
            .order_by(CookbookRecipe.order, CookbookRecipe.created_at, CookbookRecipe.id)
            .execution_options(populate_existing=True)
        )
        self._compact(list(result.scalars().all()))
        await self.db.flush()

    @staticmethod
    def _compact(entries: list[CookbookRecipe]) -> None:
        for position, entry in enumerate(entries, start=1):
            if entry.order != position:
                entry.order = position
                entry.updated_at = datetime.utcnow()
