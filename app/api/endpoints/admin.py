from datetime import datetime, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schemas.common import envelope
from app.database.base import get_db
from app.database.models import (
    Classification,
    Cookbook,
    Course,
    Meal,
    Preparation,
    Recipe,
    Source,
    User,
)
from app.services.repositories.base import BaseRepository

router = APIRouter()

COUNTED = {
    "users": User,
    "recipes": Recipe,
    "cookbooks": Cookbook,
    "classifications": Classification,
    "sources": Source,
    "meals": Meal,
    "courses": Course,
    "preparations": Preparation,
}


@router.get("/stats")
async def admin_stats(db: AsyncSession = Depends(get_db)):
    overview = {}
    for name, model in COUNTED.items():
        overview[f"total_{name}"] = await BaseRepository(db, model).count()

    recipes = BaseRepository(db, Recipe)
    cookbooks = BaseRepository(db, Cookbook)
    privacy = {
        "public_recipes": await recipes.count({"is_private": False}),
        "private_recipes": await recipes.count({"is_private": True}),
        "public_cookbooks": await cookbooks.count({"is_private": False}),
        "private_cookbooks": await cookbooks.count({"is_private": True}),
    }

    since = datetime.utcnow() - timedelta(days=30)
    recent_activity = {
        "new_users_30d": await BaseRepository(db, User).count_since(since),
        "new_recipes_30d": await recipes.count_since(since),
        "new_cookbooks_30d": await cookbooks.count_since(since),
    }

    return envelope(
        {"overview": overview, "privacy": privacy, "recent_activity": recent_activity},
        "Admin stats retrieved successfully",
        generated_at=datetime.utcnow().isoformat(),
    )
