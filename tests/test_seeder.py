from datetime import datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import mysql, postgresql

from app.core.exceptions import MigrationError, UpsertError
from app.database.models import (
    Cookbook,
    CookbookRecipe,
    Preparation,
    Recipe,
    RecipeMeal,
    User,
)
from app.services.cookbook_service import CookbookService
from app.services.migration.normalizer import normalize_tables
from app.services.migration.pipeline import apply_snapshot
from app.services.migration.seeder import SnapshotSeeder, build_upsert, owner_id_for
from app.services.migration.snapshot import Snapshot, write_snapshot
from app.services.migration.tables import MIGRATION_TABLES


async def table_counts(db) -> dict[str, int]:
    counts = {}
    for table in MIGRATION_TABLES:
        counts[table.name] = await db.scalar(select(func.count()).select_from(table.entity))
    return counts


@pytest.fixture
def snapshot(legacy_tables) -> Snapshot:
    return Snapshot(tables=normalize_tables(legacy_tables), extracted_at=datetime(2025, 1, 31))


@pytest.fixture
def snapshot_file(tmp_path, snapshot):
    return write_snapshot(snapshot, tmp_path / "snapshot.json")


async def test_seed_recipes_and_ordered_cookbook(db_session, snapshot_file):
    report = await apply_snapshot(db_session, snapshot_file, owner_email="owner@example.com")

    assert report.owner_id == owner_id_for("owner@example.com")
    assert report.counts["recipes"] == 2
    assert report.counts["cookbook_recipes"] == 2

    result = await db_session.execute(select(Recipe).order_by(Recipe.id))
    lasagna, tiramisu = result.scalars().all()
    assert (lasagna.id, lasagna.marked) == ("10", True)
    assert (tiramisu.id, tiramisu.marked) == ("11", None)
    assert lasagna.tag_list == ["pasta", "family"]
    assert lasagna.date_added == datetime(2021, 3, 4, 12, 30)
    assert lasagna.sodium == 900.0
    assert {lasagna.user_id, tiramisu.user_id} == {report.owner_id}

    result = await db_session.execute(
        select(CookbookRecipe.recipe_id, CookbookRecipe.order)
        .where(CookbookRecipe.cookbook_id == "5")
        .order_by(CookbookRecipe.order)
    )
    assert result.all() == [("10", 1), ("11", 2)]

    cookbook = await db_session.get(Cookbook, "5")
    assert cookbook.user_id == report.owner_id
    assert cookbook.is_private is False


async def test_seeding_twice_is_idempotent(db_session, snapshot_file):
    await apply_snapshot(db_session, snapshot_file)
    first = await table_counts(db_session)

    await apply_snapshot(db_session, snapshot_file)
    second = await table_counts(db_session)

    assert first == second
    assert first["recipes"] == 2
    assert await db_session.scalar(select(func.count(User.id))) == 1


async def test_reseed_updates_changed_rows(db_session, legacy_tables):
    await SnapshotSeeder(db_session).seed(Snapshot(tables=normalize_tables(legacy_tables)))

    legacy_tables["recipes"][1]["name"] = "Classic Tiramisu"
    legacy_tables["recipes"][1]["marked"] = 0
    await SnapshotSeeder(db_session).seed(Snapshot(tables=normalize_tables(legacy_tables)))

    result = await db_session.execute(select(Recipe.name, Recipe.marked).where(Recipe.id == "11"))
    assert result.one() == ("Classic Tiramisu", False)


async def test_preparation_name_falls_back_to_description(db_session, snapshot):
    await SnapshotSeeder(db_session).seed(snapshot)

    preparation = await db_session.get(Preparation, "1")
    assert preparation.name == "Oven baked"
    assert preparation.description == "Oven baked"


async def test_cookbook_positions_are_made_contiguous(db_session, legacy_tables):
    legacy_tables["cookbook_recipes"][0]["order"] = 9
    legacy_tables["cookbook_recipes"][1]["order"] = 4

    await SnapshotSeeder(db_session).seed(Snapshot(tables=normalize_tables(legacy_tables)))

    result = await db_session.execute(
        select(CookbookRecipe.recipe_id, CookbookRecipe.order).order_by(CookbookRecipe.order)
    )
    assert result.all() == [("11", 1), ("10", 2)]


async def test_existing_owner_is_reused(db_session, sample_user, snapshot):
    report = await SnapshotSeeder(db_session, owner_email=sample_user.email).seed(snapshot)

    assert report.owner_id == sample_user.id
    owners = await db_session.execute(select(Recipe.user_id).distinct())
    assert owners.scalars().all() == [sample_user.id]


async def test_failing_row_stops_the_run(db_session, legacy_tables):
    legacy_tables["cookbook_recipes"].append(
        {"id": 3, "cookbook_id": 5, "recipe_id": 99, "order": 3}
    )

    with pytest.raises(UpsertError) as exc_info:
        await SnapshotSeeder(db_session).seed(Snapshot(tables=normalize_tables(legacy_tables)))

    assert exc_info.value.table == "cookbook_recipes"
    assert exc_info.value.row_id == 3

    counts = await table_counts(db_session)
    assert counts["recipes"] == 2
    assert counts["cookbooks"] == 1
    assert counts["cookbook_recipes"] == 0


async def test_row_without_id_is_rejected(db_session, legacy_tables):
    del legacy_tables["meals"][0]["id"]

    with pytest.raises(UpsertError) as exc_info:
        await SnapshotSeeder(db_session).seed(Snapshot(tables=normalize_tables(legacy_tables)))

    assert exc_info.value.table == "meals"
    assert "no id" in str(exc_info.value)


async def test_join_rows_link_migrated_records(db_session, snapshot):
    await SnapshotSeeder(db_session).seed(snapshot)

    result = await db_session.execute(select(RecipeMeal.recipe_id, RecipeMeal.meal_id))
    assert result.all() == [("10", "1")]


def test_build_upsert_per_dialect():
    table = Recipe.__table__
    values = {"id": "1", "name": "Soup"}

    pg = build_upsert("postgresql", table, values, ["name"])
    assert "ON CONFLICT (id) DO UPDATE" in str(pg.compile(dialect=postgresql.dialect()))

    my = build_upsert("mysql", table, values, ["name"])
    assert "ON DUPLICATE KEY UPDATE" in str(my.compile(dialect=mysql.dialect()))

    nothing = build_upsert("postgresql", table, values, [])
    assert "DO NOTHING" in str(nothing.compile(dialect=postgresql.dialect()))


def test_build_upsert_unknown_dialect():
    with pytest.raises(MigrationError, match="oracle"):
        build_upsert("oracle", Recipe.__table__, {"id": "1"}, [])


def test_owner_id_is_stable():
    assert owner_id_for("Owner@Example.com") == owner_id_for("owner@example.com")
    assert owner_id_for("a@example.com") != owner_id_for("b@example.com")


async def test_reseed_keeps_positions_unique_next_to_added_entries(db_session, legacy_tables, make_recipes):
    await SnapshotSeeder(db_session).seed(Snapshot(tables=normalize_tables(legacy_tables)))
    (added,) = await make_recipes(1)
    await CookbookService(db_session).add_recipes("5", [added.id])

    created = legacy_tables["recipes"][1]["created_at"]
    legacy_tables["recipes"].append({**legacy_tables["recipes"][1], "id": 12, "name": "Panna Cotta"})
    legacy_tables["cookbook_recipes"].append(
        {"id": 3, "cookbook_id": 5, "recipe_id": 12, "order": 3, "created_at": created, "updated_at": created}
    )
    await SnapshotSeeder(db_session).seed(Snapshot(tables=normalize_tables(legacy_tables)))

    result = await db_session.execute(
        select(CookbookRecipe.recipe_id, CookbookRecipe.order)
        .where(CookbookRecipe.cookbook_id == "5")
        .order_by(CookbookRecipe.order)
    )
    assert result.all() == [("10", 1), ("11", 2), ("12", 3), (added.id, 4)]
