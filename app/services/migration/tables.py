"""
Declarative description of the migrated tables.

Tables declare what they reference; the write order is derived from those
declarations, so adding a lookup or join table is a data change here rather
than a change to the seed loop.
"""
import heapq
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.database.models import (
    Classification,
    Cookbook,
    CookbookRecipe,
    Course,
    Meal,
    Preparation,
    Recipe,
    RecipeCourse,
    RecipeMeal,
    RecipePreparation,
    Source,
)


class TableDef(BaseModel):
    """One migrated table and how its rows are upserted."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str                                       # legacy and target table name
    entity: Any                                     # SQLAlchemy model class
    depends_on: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)    # FK columns holding legacy ids
    update_columns: list[str] = Field(default_factory=list)  # refreshed on conflict
    owned: bool = False                             # rows belong to the legacy owner user
    fallbacks: dict[str, str] = Field(default_factory=dict)  # column -> column used when missing
    sequence: tuple[str, str] | None = None         # (group column, position column)


LOOKUP_COLUMNS = ["name", "description"]

MIGRATION_TABLES: list[TableDef] = [
    TableDef(name="classifications", entity=Classification, update_columns=LOOKUP_COLUMNS),
    TableDef(name="sources", entity=Source, update_columns=LOOKUP_COLUMNS),
    TableDef(name="meals", entity=Meal, update_columns=LOOKUP_COLUMNS),
    TableDef(name="courses", entity=Course, update_columns=LOOKUP_COLUMNS),
    TableDef(
        name="preparations",
        entity=Preparation,
        update_columns=LOOKUP_COLUMNS,
        fallbacks={"name": "description"},
    ),
    TableDef(
        name="recipes",
        entity=Recipe,
        depends_on=["sources", "classifications"],
        references=["source_id", "classification_id"],
        update_columns=[
            "name",
            "ingredients",
            "instructions",
            "notes",
            "servings",
            "source_id",
            "classification_id",
            "date_added",
            "calories",
            "fat",
            "cholesterol",
            "sodium",
            "protein",
            "marked",
            "tags",
        ],
        owned=True,
    ),
    TableDef(
        name="cookbooks",
        entity=Cookbook,
        update_columns=["name", "description"],
        owned=True,
    ),
    TableDef(
        name="recipe_meals",
        entity=RecipeMeal,
        depends_on=["recipes", "meals"],
        references=["recipe_id", "meal_id"],
        update_columns=["recipe_id", "meal_id"],
    ),
    TableDef(
        name="recipe_courses",
        entity=RecipeCourse,
        depends_on=["recipes", "courses"],
        references=["recipe_id", "course_id"],
        update_columns=["recipe_id", "course_id"],
    ),
    TableDef(
        name="recipe_preparations",
        entity=RecipePreparation,
        depends_on=["recipes", "preparations"],
        references=["recipe_id", "preparation_id"],
        update_columns=["recipe_id", "preparation_id"],
    ),
    TableDef(
        name="cookbook_recipes",
        entity=CookbookRecipe,
        depends_on=["cookbooks", "recipes"],
        references=["cookbook_id", "recipe_id"],
        update_columns=["cookbook_id", "recipe_id", "order"],
        sequence=("cookbook_id", "order"),
    ),
]

TABLE_NAMES: list[str] = [table.name for table in MIGRATION_TABLES]


def resolve_order(tables: list[TableDef]) -> list[TableDef]:
    """
    Order tables so every table comes after the tables it depends on.

    Among tables that are ready at the same time, declaration order wins,
    which keeps the write sequence stable between runs.

    Raises:
        ValueError: on an unknown dependency or a dependency cycle
    """
    position = {table.name: index for index, table in enumerate(tables)}
    pending: dict[str, set[str]] = {}
    dependents: dict[str, list[str]] = {table.name: [] for table in tables}

    for table in tables:
        for dependency in table.depends_on:
            if dependency not in position:
                raise ValueError(f"Table '{table.name}' depends on unknown table '{dependency}'")
            dependents[dependency].append(table.name)
        pending[table.name] = set(table.depends_on)

    ready = [position[name] for name, deps in pending.items() if not deps]
    heapq.heapify(ready)

    ordered: list[TableDef] = []
    while ready:
        table = tables[heapq.heappop(ready)]
        ordered.append(table)
        for dependent in dependents[table.name]:
            pending[dependent].discard(table.name)
            if not pending[dependent]:
                heapq.heappush(ready, position[dependent])

    if len(ordered) != len(tables):
        stuck = sorted(name for name, deps in pending.items() if deps)
        raise ValueError(f"Dependency cycle between tables: {', '.join(stuck)}")

    return ordered


def assign_positions(rows: list[dict[str, Any]], group: str, column: str) -> list[dict[str, Any]]:
    """
    Give rows contiguous 1..N positions within each group.

    Rows keep their relative order: rows with a position sort by it, rows
    without one follow in the order they were given. Input rows are not
    mutated.
    """
    groups: dict[Any, list[tuple[int, dict[str, Any]]]] = {}
    for index, row in enumerate(rows):
        groups.setdefault(row.get(group), []).append((index, row))

    positioned: dict[int, dict[str, Any]] = {}
    for members in groups.values():
        members.sort(
            key=lambda item: (
                item[1].get(column) is None,
                item[1].get(column) if item[1].get(column) is not None else 0,
                item[0],
            )
        )
        for position, (index, row) in enumerate(members, start=1):
            positioned[index] = {**row, column: position}

    return [positioned[index] for index in range(len(rows))]
