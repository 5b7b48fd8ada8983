#!/usr/bin/env python3
import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import MigrationError
from app.database.base import AsyncSessionLocal, engine
from app.services.migration.pipeline import apply_snapshot, generate_snapshot
from app.services.migration.source import LegacySource

app = typer.Typer(help="Cookbook Developer CLI")
console = Console()
logger = logging.getLogger("cookbook")


@app.callback()
def configure(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.LOG_LEVEL,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


async def get_db() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def _counts_table(title: str, counts: dict[str, int]) -> Table:
    table = Table(title=title)
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="green", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    return table


@app.command(name="generate-seed")
def generate_seed(
    output: Path = typer.Option(None, "--output", "-o", help="Snapshot file to write"),
    legacy_url: str = typer.Option(None, "--legacy-url", help="Override the legacy database URL"),
):
    """Extract the legacy database into a snapshot file."""
    output = output or Path(settings.SNAPSHOT_PATH)
    source = LegacySource(legacy_url) if legacy_url else LegacySource.from_settings()

    try:
        snapshot = generate_snapshot(source, output)
    except MigrationError as e:
        logger.error(f"✗ {e}")
        raise typer.Exit(1)

    console.print(_counts_table("Extracted", snapshot.row_counts()))
    console.print(f"[green]✓ Wrote {output}[/green]")


@app.command(name="seed")
def seed(
    snapshot: Path = typer.Option(None, "--snapshot", "-s", help="Snapshot file to apply"),
):
    """Upsert a snapshot into the application database."""
    asyncio.run(_seed(snapshot or Path(settings.SNAPSHOT_PATH)))


async def _seed(snapshot_path: Path):
    try:
        async for db in get_db():
            report = await apply_snapshot(db, snapshot_path)
    except MigrationError as e:
        logger.error(f"✗ Error during seed: {e}")
        raise typer.Exit(1)
    finally:
        await engine.dispose()

    console.print(_counts_table("Seeded", report.counts))
    console.print(f"[green]✓ Database seed completed: {report.total} rows[/green]")


@app.command(name="list")
def list_recipes(
    limit: int = typer.Option(20, "--limit", "-l", help="Number of recipes to show"),
    search: str = typer.Option(None, "--search", "-s", help="Search recipe names"),
):
    """List recipes in the database."""
    asyncio.run(_list_recipes(limit, search))


async def _list_recipes(limit: int, search: str | None):
    from app.core.schemas.recipe import RecipeSearch
    from app.services.recipe_service import RecipeService

    try:
        async for db in get_db():
            recipes = await RecipeService(db).search_recipes(RecipeSearch(query=search, limit=limit))

            if not recipes:
                console.print("[yellow]No recipes found[/yellow]")
                return

            table = Table(title=f"Recipes ({len(recipes)} shown)")
            table.add_column("ID", style="dim")
            table.add_column("Name", style="cyan")
            table.add_column("Servings", style="magenta")
            table.add_column("Calories", style="green")
            table.add_column("Marked", style="yellow")

            for recipe in recipes:
                table.add_row(
                    recipe.id[:8],
                    recipe.name,
                    str(recipe.servings),
                    str(recipe.calories) if recipe.calories is not None else "-",
                    recipe.marked_state.value,
                )

            console.print(table)
    finally:
        await engine.dispose()


@app.command(name="stats")
def show_stats():
    """Show row counts for every migrated table."""
    asyncio.run(_show_stats())


async def _show_stats():
    from sqlalchemy import func, select

    from app.database.models import User
    from app.services.migration.tables import MIGRATION_TABLES

    try:
        async for db in get_db():
            counts = {"users": await db.scalar(select(func.count(User.id)))}
            for table in MIGRATION_TABLES:
                counts[table.name] = await db.scalar(
                    select(func.count()).select_from(table.entity)
                )
            console.print(_counts_table(f"{settings.APP_NAME} Database Statistics", counts))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    app()
