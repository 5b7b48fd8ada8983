from datetime import datetime
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database.base import Base, enforce_sqlite_foreign_keys, get_db
from app.database.models import Classification, Cookbook, CookbookRecipe, Meal, Recipe, User


@pytest.fixture
async def engine():
    """Create a test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enforce_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, bound to the test database."""
    from app.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def sample_user(db_session: AsyncSession) -> User:
    """Create a sample user for testing."""
    user = User(name="Test User", email="test@example.com")

    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)

    return user


@pytest.fixture
async def sample_classification(db_session: AsyncSession) -> Classification:
    classification = Classification(name="Italian")
    db_session.add(classification)
    await db_session.commit()
    return classification


@pytest.fixture
async def sample_meal(db_session: AsyncSession) -> Meal:
    meal = Meal(name="Dinner")
    db_session.add(meal)
    await db_session.commit()
    return meal


@pytest.fixture
async def sample_recipe(db_session: AsyncSession, sample_user, sample_classification) -> Recipe:
    """Create a sample recipe for testing."""
    recipe = Recipe(
        user_id=sample_user.id,
        name="Test Chicken Salad",
        ingredients="1 chicken breast\n1 cup lettuce\n2 tbsp dressing",
        instructions="Mix all ingredients together.",
        servings=2,
        classification_id=sample_classification.id,
        calories=350,
        protein=30.0,
        marked=True,
        tags=Recipe.encode_tags(["salad", "quick"]),
    )

    db_session.add(recipe)
    await db_session.commit()
    await db_session.refresh(recipe)

    return recipe


@pytest.fixture
async def make_recipes(db_session: AsyncSession, sample_user):
    """Factory creating n plain recipes owned by the sample user."""

    async def _make(count: int) -> list[Recipe]:
        recipes = [
            Recipe(
                user_id=sample_user.id,
                name=f"Recipe {index}",
                ingredients="water",
                instructions="boil",
            )
            for index in range(1, count + 1)
        ]
        db_session.add_all(recipes)
        await db_session.commit()
        return recipes

    return _make


@pytest.fixture
async def cookbook_with_recipes(db_session: AsyncSession, sample_user, make_recipes):
    """A cookbook holding three recipes at positions 1, 2, 3."""
    recipes = await make_recipes(3)
    cookbook = Cookbook(user_id=sample_user.id, name="Weeknights")
    db_session.add(cookbook)
    await db_session.flush()

    for order, recipe in enumerate(recipes, start=1):
        db_session.add(CookbookRecipe(cookbook_id=cookbook.id, recipe_id=recipe.id, order=order))
    await db_session.commit()

    return cookbook, recipes


@pytest.fixture
def legacy_tables():
    """Rows as read from the legacy database: two recipes in one cookbook."""
    created = datetime(2021, 3, 4, 12, 30)
    return {
        "classifications": [
            {"id": 1, "name": "Italian", "description": None, "created_at": created, "updated_at": created},
        ],
        "sources": [
            {"id": 1, "name": "Grandma", "description": "Family cards", "created_at": created, "updated_at": created},
        ],
        "meals": [
            {"id": 1, "name": "Dinner", "description": None, "created_at": created, "updated_at": created},
        ],
        "courses": [
            {"id": 1, "name": "Main", "description": None, "created_at": created, "updated_at": created},
        ],
        "preparations": [
            {"id": 1, "name": None, "description": "Oven baked", "created_at": created, "updated_at": created},
        ],
        "recipes": [
            {
                "id": 10,
                "name": "Lasagna",
                "ingredients": "pasta, sauce, cheese",
                "instructions": "Layer and bake.",
                "notes": None,
                "servings": 6,
                "source_id": 1,
                "classification_id": 1,
                "date_added": created,
                "calories": 520,
                "fat": 21.5,
                "cholesterol": None,
                "sodium": 900,
                "protein": 32,
                "marked": 1,
                "tags": '["pasta", "family"]',
                "created_at": created,
                "updated_at": created,
            },
            {
                "id": 11,
                "name": "Tiramisu",
                "ingredients": "ladyfingers, mascarpone, coffee",
                "instructions": "Soak, layer, chill.",
                "notes": "Make a day ahead",
                "servings": 8,
                "source_id": 1,
                "classification_id": 1,
                "date_added": created,
                "calories": None,
                "fat": None,
                "cholesterol": None,
                "sodium": None,
                "protein": None,
                "marked": 2,
                "tags": None,
                "created_at": created,
                "updated_at": created,
            },
        ],
        "recipe_meals": [
            {"id": 1, "recipe_id": 10, "meal_id": 1, "created_at": created, "updated_at": created},
        ],
        "recipe_courses": [
            {"id": 1, "recipe_id": 10, "course_id": 1, "created_at": created, "updated_at": created},
        ],
        "recipe_preparations": [
            {"id": 1, "recipe_id": 10, "preparation_id": 1, "created_at": created, "updated_at": created},
        ],
        "cookbooks": [
            {"id": 5, "name": "Sunday Dinner", "description": None, "created_at": created, "updated_at": created},
        ],
        "cookbook_recipes": [
            {"id": 1, "cookbook_id": 5, "recipe_id": 10, "order": 1, "created_at": created, "updated_at": created},
            {"id": 2, "cookbook_id": 5, "recipe_id": 11, "order": 2, "created_at": created, "updated_at": created},
        ],
    }
