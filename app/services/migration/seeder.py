"""
Write side of the legacy migration.

Replays a snapshot into the application database with one upsert per row,
keyed by the legacy id, one table at a time in dependency order. Each table
pass is committed when it completes; a failing row aborts the run and leaves
earlier passes in place. Re-running the same snapshot converges on the same
state, which is the recovery path after a failure.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Table, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import MigrationError, UpsertError
from app.database.models import Marked, User
from app.services.cookbook_service import CookbookService
from app.services.migration.snapshot import Snapshot
from app.services.migration.tables import (
    MIGRATION_TABLES,
    TableDef,
    assign_positions,
    resolve_order,
)

logger = logging.getLogger(__name__)


@dataclass
class SeedReport:
    owner_id: str | None = None
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def owner_id_for(email: str) -> str:
    """Stable user id for the legacy owner, derived from its email."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{email.lower()}"))


def build_upsert(dialect: str, table: Table, values: dict[str, Any], update_columns: list[str]):
    """Build the dialect's insert-or-update statement keyed on the primary key."""
    if dialect == "mysql":
        from sqlalchemy.dialects.mysql import insert

        stmt = insert(table).values(values)
        if not update_columns:
            # MySQL has no DO NOTHING; re-assigning the key is a no-op update
            return stmt.on_duplicate_key_update(id=stmt.inserted.id)
        return stmt.on_duplicate_key_update({c: stmt.inserted[c] for c in update_columns})

    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise MigrationError(f"Upserts are not supported on '{dialect}' databases")

    stmt = insert(table).values(values)
    if not update_columns:
        return stmt.on_conflict_do_nothing(index_elements=[table.c.id])
    return stmt.on_conflict_do_update(
        index_elements=[table.c.id],
        set_={c: stmt.excluded[c] for c in update_columns},
    )


def coerce_value(column, value: Any) -> Any:
    """Convert a snapshot value to the Python type the target column expects."""
    if value is None:
        return None

    column_type = column.type
    if isinstance(column_type, Boolean):
        if isinstance(value, Marked):
            return value.as_bool()
        return bool(value)
    if isinstance(column_type, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time())
        return datetime.fromisoformat(str(value))
    if isinstance(column_type, Integer):
        return int(value)
    if isinstance(column_type, Float):
        return float(value)
    if isinstance(column_type, String) and (column.primary_key or column.foreign_keys):
        return str(value)
    return value


class SnapshotSeeder:
    """
    Applies a snapshot to the target database.

    Usage:
        async with AsyncSessionLocal() as db:
            report = await SnapshotSeeder(db).seed(read_snapshot(path))
    """

    def __init__(
        self,
        db: AsyncSession,
        tables: list[TableDef] | None = None,
        owner_email: str | None = None,
        owner_name: str | None = None,
    ):
        self.db = db
        self.tables = resolve_order(tables or MIGRATION_TABLES)
        self.owner_email = owner_email or settings.LEGACY_OWNER_EMAIL
        self.owner_name = owner_name or settings.LEGACY_OWNER_NAME

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    async def seed(self, snapshot: Snapshot) -> SeedReport:
        logger.info("Starting database seed from legacy snapshot...")
        report = SeedReport(owner_id=await self.ensure_owner())

        for table in self.tables:
            rows = snapshot.tables.get(table.name, [])
            logger.info(f"Seeding {table.name} ({len(rows)} rows)...")
            report.counts[table.name] = await self._seed_table(table, rows, report.owner_id)

        logger.info(f"✓ Database seed completed: {report.total} rows upserted")
        return report

    async def ensure_owner(self) -> str:
        """Find or create the user that owns migrated recipes and cookbooks."""
        result = await self.db.execute(select(User.id).where(User.email == self.owner_email))
        existing = result.scalar_one_or_none()
        if existing:
            return existing

        owner = User(
            id=owner_id_for(self.owner_email),
            name=self.owner_name,
            email=self.owner_email,
        )
        self.db.add(owner)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise UpsertError("users", owner.id, str(e)) from e
        return owner.id

    async def _seed_table(self, table: TableDef, rows: list[dict[str, Any]], owner_id: str) -> int:
        target: Table = table.entity.__table__
        if table.sequence:
            rows = assign_positions(rows, *table.sequence)

        written = 0
        groups: dict[Any, None] = {}
        for row in rows:
            try:
                values = self.row_values(table, row, owner_id)
                update_columns = [c for c in table.update_columns if c in values]
                await self.db.execute(build_upsert(self.dialect, target, values, update_columns))
            except (SQLAlchemyError, ValueError, TypeError) as e:
                await self.db.rollback()
                raise UpsertError(table.name, row.get("id"), str(e)) from e
            if table.sequence:
                groups[values[table.sequence[0]]] = None
            written += 1

        try:
            # Entries added after the legacy export can share a position with
            # migrated ones; cookbook_recipes is the only sequenced table.
            cookbooks = CookbookService(self.db)
            for cookbook_id in groups:
                await cookbooks.renumber(cookbook_id)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise UpsertError(table.name, None, str(e)) from e
        return written

    def row_values(self, table: TableDef, row: dict[str, Any], owner_id: str) -> dict[str, Any]:
        """Map a snapshot row onto the target table's columns."""
        columns = table.entity.__table__.columns
        values: dict[str, Any] = {}

        for key, value in row.items():
            if key in columns:
                values[key] = coerce_value(columns[key], value)

        for column, fallback in table.fallbacks.items():
            if values.get(column) is None and row.get(fallback) is not None:
                values[column] = coerce_value(columns[column], row[fallback])

        if table.owned:
            values["user_id"] = owner_id

        now = datetime.utcnow()
        for stamp in ("created_at", "updated_at"):
            if values.get(stamp) is None:
                values[stamp] = now

        if values.get("id") is None:
            raise ValueError("row has no id")
        return values
