from datetime import datetime

from pydantic import BaseModel, Field

from app.database.models import Recipe


class RecipeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    ingredients: str = Field(..., min_length=1)
    instructions: str = Field(..., min_length=1)
    notes: str | None = None
    servings: int = Field(1, ge=1)
    source_id: str | None = None
    classification_id: str | None = None
    calories: int | None = Field(None, ge=0)
    fat: float | None = Field(None, ge=0)
    cholesterol: float | None = Field(None, ge=0)
    sodium: float | None = Field(None, ge=0)
    protein: float | None = Field(None, ge=0)
    marked: bool | None = False
    tags: list[str] = Field(default_factory=list)
    meal_ids: list[str] = Field(default_factory=list)
    course_ids: list[str] = Field(default_factory=list)
    preparation_ids: list[str] = Field(default_factory=list)
    is_private: bool = False


class RecipeCreate(RecipeBase):
    user_id: str = Field(..., min_length=1)


class RecipeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    ingredients: str | None = Field(None, min_length=1)
    instructions: str | None = Field(None, min_length=1)
    notes: str | None = None
    servings: int | None = Field(None, ge=1)
    source_id: str | None = None
    classification_id: str | None = None
    calories: int | None = Field(None, ge=0)
    fat: float | None = Field(None, ge=0)
    cholesterol: float | None = Field(None, ge=0)
    sodium: float | None = Field(None, ge=0)
    protein: float | None = Field(None, ge=0)
    marked: bool | None = None
    tags: list[str] | None = None
    meal_ids: list[str] | None = None
    course_ids: list[str] | None = None
    preparation_ids: list[str] | None = None
    is_private: bool | None = None


class RecipeRead(RecipeBase):
    id: str
    user_id: str
    date_added: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "RecipeRead":
        """Build from a recipe loaded with its meal/course/preparation links."""
        return cls(
            id=recipe.id,
            user_id=recipe.user_id,
            name=recipe.name,
            ingredients=recipe.ingredients,
            instructions=recipe.instructions,
            notes=recipe.notes,
            servings=recipe.servings,
            source_id=recipe.source_id,
            classification_id=recipe.classification_id,
            date_added=recipe.date_added,
            calories=recipe.calories,
            fat=recipe.fat,
            cholesterol=recipe.cholesterol,
            sodium=recipe.sodium,
            protein=recipe.protein,
            marked=recipe.marked,
            tags=recipe.tag_list,
            meal_ids=[link.meal_id for link in recipe.meals],
            course_ids=[link.course_id for link in recipe.courses],
            preparation_ids=[link.preparation_id for link in recipe.preparations],
            is_private=recipe.is_private,
            created_at=recipe.created_at,
            updated_at=recipe.updated_at,
        )


class RecipeSearch(BaseModel):
    query: str | None = None
    classification_id: str | None = None
    source_id: str | None = None
    tags: list[str] | None = None
    meal_ids: list[str] | None = None
    course_ids: list[str] | None = None
    preparation_ids: list[str] | None = None
    is_private: bool | None = None
    user_id: str | None = None
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)
