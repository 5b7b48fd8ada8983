import pytest

from app.core.schemas.recipe import RecipeCreate, RecipeSearch, RecipeUpdate
from app.database.models import Marked
from app.services.recipe_service import RecipeService


@pytest.mark.asyncio
async def test_search_recipes(db_session, sample_recipe, sample_classification):
    """Test recipe search functionality."""
    recipe_service = RecipeService(db_session)

    # Search by name
    search_params = RecipeSearch(query="chicken", limit=10)
    results = await recipe_service.search_recipes(search_params)

    assert len(results) == 1
    assert results[0].name == "Test Chicken Salad"

    # Search by tag
    search_params = RecipeSearch(tags=["quick"], limit=10)
    results = await recipe_service.search_recipes(search_params)

    assert len(results) == 1
    assert results[0].tag_list == ["salad", "quick"]

    # Search by classification
    search_params = RecipeSearch(classification_id=sample_classification.id, limit=10)
    results = await recipe_service.search_recipes(search_params)

    assert len(results) == 1

    # No match
    search_params = RecipeSearch(query="tofu", limit=10)
    assert await recipe_service.search_recipes(search_params) == []


@pytest.mark.asyncio
async def test_create_recipe_with_links(db_session, sample_user, sample_meal):
    """Test recipe creation with meal links."""
    recipe_service = RecipeService(db_session)

    recipe = await recipe_service.create_recipe(
        RecipeCreate(
            user_id=sample_user.id,
            name="Pancakes",
            ingredients="flour, milk, eggs",
            instructions="Whisk and fry.",
            servings=4,
            tags=["breakfast"],
            meal_ids=[sample_meal.id, sample_meal.id],
            marked=None,
        )
    )

    assert recipe.name == "Pancakes"
    assert recipe.marked_state is Marked.UNKNOWN
    assert recipe.tag_list == ["breakfast"]
    assert [link.meal_id for link in recipe.meals] == [sample_meal.id]

    results = await recipe_service.search_recipes(RecipeSearch(meal_ids=[sample_meal.id]))
    assert [r.id for r in results] == [recipe.id]


@pytest.mark.asyncio
async def test_create_recipe_with_unknown_reference(db_session, sample_user):
    recipe_service = RecipeService(db_session)

    with pytest.raises(ValueError, match="One or more meals not found"):
        await recipe_service.create_recipe(
            RecipeCreate(
                user_id=sample_user.id,
                name="Ghost",
                ingredients="air",
                instructions="none",
                meal_ids=["missing"],
            )
        )


@pytest.mark.asyncio
async def test_update_recipe(db_session, sample_recipe, sample_meal):
    """Test partial updates and link replacement."""
    recipe_service = RecipeService(db_session)

    recipe = await recipe_service.update_recipe(
        sample_recipe.id,
        RecipeUpdate(name="Chicken Caesar", marked=False, meal_ids=[sample_meal.id]),
    )

    assert recipe.name == "Chicken Caesar"
    assert recipe.marked_state is Marked.FALSE
    assert recipe.calories == 350
    assert [link.meal_id for link in recipe.meals] == [sample_meal.id]

    recipe = await recipe_service.update_recipe(sample_recipe.id, RecipeUpdate(meal_ids=[]))
    assert recipe.meals == []

    assert await recipe_service.update_recipe("missing", RecipeUpdate(name="x")) is None


@pytest.mark.asyncio
async def test_delete_recipe(db_session, sample_recipe):
    recipe_service = RecipeService(db_session)

    assert await recipe_service.delete_recipe(sample_recipe.id) is True
    assert await recipe_service.repository.get_by_id(sample_recipe.id) is None
    assert await recipe_service.delete_recipe(sample_recipe.id) is False
