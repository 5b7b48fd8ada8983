"""
Snapshot file written by the extraction job and read by the seed job.

The snapshot is a JSON document:

    {
      "format": "cookbook-legacy-snapshot",
      "version": 1,
      "extracted_at": "2025-01-31T10:00:00",
      "catalog": "recipe_laravel",
      "tables": {"classifications": [...], "recipes": [...], ...}
    }

Dates become ISO-8601 strings and the tri-state marked flag becomes
true/false/null. Anything that cannot be written losslessly aborts the
write before the target file is touched.
"""
import json
import logging
import math
import os
import tempfile
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any

from app.core.exceptions import SerializationError, SnapshotError
from app.database.models import Marked
from app.services.migration.tables import TABLE_NAMES

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT = "cookbook-legacy-snapshot"
SNAPSHOT_VERSION = 1


@dataclass
class Snapshot:
    """Point-in-time extraction of every legacy table."""

    tables: dict[str, list[dict[str, Any]]]
    extracted_at: datetime = field(default_factory=datetime.utcnow)
    catalog: str | None = None

    def row_counts(self) -> dict[str, int]:
        return {name: len(self.tables.get(name, [])) for name in TABLE_NAMES}


def encode_value(value: Any) -> Any:
    """
    Convert one column value to its JSON form.

    Raises:
        ValueError: if the value has no lossless JSON representation
    """
    # Marked subclasses str, so it has to be matched first
    if isinstance(value, Marked):
        return value.as_bool()
    if value is None or isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"non-finite float {value!r}")
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"non-finite decimal {value!r}")
        if value == value.to_integral_value():
            return int(value)
        as_float = float(value)
        if Decimal(repr(as_float)) != value:
            raise ValueError(f"decimal {value} does not fit a float")
        return as_float
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    raise ValueError(f"unsupported type {type(value).__name__}")


def encode_snapshot(snapshot: Snapshot) -> str:
    """Render the snapshot as JSON text, validating every row on the way."""
    tables: dict[str, list[dict[str, Any]]] = {}
    for name in TABLE_NAMES:
        encoded_rows = []
        for row in snapshot.tables.get(name, []):
            encoded = {}
            for column, value in row.items():
                try:
                    encoded[column] = encode_value(value)
                except ValueError as e:
                    raise SerializationError(name, row.get("id"), f"column '{column}': {e}") from e
            encoded_rows.append(encoded)
        tables[name] = encoded_rows

    document = {
        "format": SNAPSHOT_FORMAT,
        "version": SNAPSHOT_VERSION,
        "extracted_at": snapshot.extracted_at.isoformat(),
        "catalog": snapshot.catalog,
        "tables": tables,
    }
    return json.dumps(document, indent=2, ensure_ascii=False, allow_nan=False)


def write_snapshot(snapshot: Snapshot, path: str | Path) -> Path:
    """
    Write the snapshot to path atomically.

    The document is fully encoded first; the file only appears, via rename,
    once it has been written completely.
    """
    content = encode_snapshot(snapshot)

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info(f"Wrote snapshot to {target}")
    return target


def read_snapshot(path: str | Path) -> Snapshot:
    """
    Load a snapshot written by write_snapshot.

    Raises:
        SnapshotError: missing file, invalid JSON, unknown format or version
    """
    source = Path(path)
    try:
        with open(source, "r", encoding="utf-8") as f:
            document = json.load(f)
    except FileNotFoundError as e:
        raise SnapshotError(f"Snapshot file not found: {source}") from e
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot file is not valid JSON: {e}") from e

    if not isinstance(document, dict) or document.get("format") != SNAPSHOT_FORMAT:
        raise SnapshotError(f"{source} is not a legacy snapshot")
    if document.get("version") != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version: {document.get('version')!r}")

    tables = document.get("tables")
    if not isinstance(tables, dict):
        raise SnapshotError("Snapshot has no tables")
    missing = [name for name in TABLE_NAMES if name not in tables]
    if missing:
        raise SnapshotError(f"Snapshot is missing tables: {', '.join(missing)}")

    try:
        extracted_at = datetime.fromisoformat(document["extracted_at"])
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotError("Snapshot has no valid extracted_at timestamp") from e

    return Snapshot(tables=tables, extracted_at=extracted_at, catalog=document.get("catalog"))
