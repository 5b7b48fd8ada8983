from datetime import datetime

from pydantic import BaseModel, Field, HttpUrl

from app.database.models import Cookbook


class CookbookCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    cover_image: HttpUrl | None = None
    is_private: bool = False
    user_id: str = Field(..., min_length=1)


class CookbookUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    cover_image: HttpUrl | None = None
    is_private: bool | None = None


class CookbookAddRecipes(BaseModel):
    recipe_ids: list[str] = Field(..., min_length=1)


class CookbookReorderRecipes(BaseModel):
    recipe_order: dict[str, int]


class RecipeOrder(BaseModel):
    recipe_id: str
    order: int


class CookbookRead(BaseModel):
    id: str
    user_id: str
    name: str
    description: str | None = None
    cover_image: str | None = None
    recipe_ids: list[RecipeOrder] = Field(default_factory=list)
    is_private: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_cookbook(cls, cookbook: Cookbook) -> "CookbookRead":
        """Build from a cookbook loaded with its recipe entries."""
        return cls(
            id=cookbook.id,
            user_id=cookbook.user_id,
            name=cookbook.name,
            description=cookbook.description,
            cover_image=cookbook.cover_image,
            recipe_ids=[
                RecipeOrder(recipe_id=entry.recipe_id, order=entry.order)
                for entry in sorted(cookbook.recipes, key=lambda e: e.order)
            ],
            is_private=cookbook.is_private,
            created_at=cookbook.created_at,
            updated_at=cookbook.updated_at,
        )
