"""
Errors raised by the legacy migration pipeline.

None of these are recovered mid-pipeline: they propagate to the command
that started the run, which reports them and exits non-zero.
"""
from typing import Any


class MigrationError(Exception):
    """Base class for every migration failure."""


class SourceConnectionError(MigrationError):
    """The legacy store could not be reached or refused the credentials."""


class ExtractionError(MigrationError):
    def __init__(self, table: str, reason: str):
        self.table = table
        super().__init__(f"Failed to extract table '{table}': {reason}")


class NormalizationError(MigrationError):
    def __init__(self, table: str, row_id: Any, reason: str):
        self.table = table
        self.row_id = row_id
        super().__init__(f"Cannot normalize {table} row {row_id!r}: {reason}")


class SerializationError(MigrationError):
    def __init__(self, table: str, row_id: Any, reason: str):
        self.table = table
        self.row_id = row_id
        super().__init__(f"Cannot serialize {table} row {row_id!r}: {reason}")


class SnapshotError(MigrationError):
    """The snapshot file is missing, unreadable or of an unknown format."""


class UpsertError(MigrationError):
    def __init__(self, table: str, row_id: Any, reason: str):
        self.table = table
        self.row_id = row_id
        super().__init__(f"Upsert into '{table}' failed for row {row_id!r}: {reason}")
