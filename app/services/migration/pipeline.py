import logging
from datetime import datetime
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.migration.normalizer import normalize_tables
from app.services.migration.seeder import SeedReport, SnapshotSeeder
from app.services.migration.snapshot import Snapshot, read_snapshot, write_snapshot
from app.services.migration.source import LegacySource
from app.services.migration.tables import TABLE_NAMES

logger = logging.getLogger(__name__)


def extract_snapshot(source: LegacySource) -> Snapshot:
    """Read every legacy table and normalize it. Always releases the source."""
    try:
        source.list_catalogs()
        tables = source.extract(TABLE_NAMES)
    finally:
        source.close()

    return Snapshot(
        tables=normalize_tables(tables),
        extracted_at=datetime.utcnow(),
        catalog=source.catalog,
    )


def generate_snapshot(source: LegacySource, path: str | Path) -> Snapshot:
    """Extraction job: legacy database -> snapshot file."""
    logger.info("Fetching legacy database data...")
    snapshot = extract_snapshot(source)
    write_snapshot(snapshot, path)
    return snapshot


async def apply_snapshot(db: AsyncSession, path: str | Path, **seeder_options) -> SeedReport:
    """Seed job: snapshot file -> application database."""
    snapshot = read_snapshot(path)
    logger.info(f"Loaded snapshot extracted at {snapshot.extracted_at.isoformat()}")
    return await SnapshotSeeder(db, **seeder_options).seed(snapshot)
