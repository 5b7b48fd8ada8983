#!/usr/bin/env python3
"""
Create the application schema and, optionally, a handful of lookup rows for
local development.
"""
import asyncio
import sys
from pathlib import Path

# Add the parent directory to the Python path
sys.path.append(str(Path(__file__).parent.parent))

from sqlalchemy import select

from app.database.base import AsyncSessionLocal, engine
from app.database.models import Base, Classification, Course, Meal, Preparation, Source

SAMPLE_LOOKUPS = {
    Classification: ["Italian", "Mexican", "Asian"],
    Source: ["Family recipe", "Magazine"],
    Meal: ["Breakfast", "Lunch", "Dinner"],
    Course: ["Appetizer", "Main", "Dessert"],
    Preparation: ["Bake", "Grill", "Slow cook"],
}


async def init_db(with_samples: bool = False):
    """Initialize database schema."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Schema created.")

    if not with_samples:
        return

    async with AsyncSessionLocal() as db:
        # Check if data already exists
        result = await db.execute(select(Classification).limit(1))
        if result.scalar_one_or_none():
            print("Database already contains data. Skipping sample lookups.")
            return

        for model, names in SAMPLE_LOOKUPS.items():
            db.add_all(model(name=name) for name in names)
        await db.commit()

        for model, names in SAMPLE_LOOKUPS.items():
            print(f"- {len(names)} {model.__tablename__} added")


async def main():
    try:
        await init_db(with_samples="--samples" in sys.argv)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
