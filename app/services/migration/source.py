"""
Read-only access to the legacy recipe database.

Extraction is all-or-nothing: every table is read over one connection, and
any failure aborts the run before a partial dataset can reach the emitter.
"""
import logging
from typing import Any

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings, settings
from app.core.exceptions import ExtractionError, SourceConnectionError

logger = logging.getLogger(__name__)

READ_ONLY_STATEMENTS = {
    "mysql": "SET SESSION TRANSACTION READ ONLY",
    "postgresql": "SET SESSION CHARACTERISTICS AS TRANSACTION READ ONLY",
    "sqlite": "PRAGMA query_only = ON",
}

# Server-level catalog listings; other dialects fall back to the inspector
CATALOG_QUERIES = {
    "mysql": "SHOW DATABASES",
    "postgresql": "SELECT datname FROM pg_database WHERE NOT datistemplate ORDER BY datname",
}

# Database to connect to when no catalog is selected yet
SERVER_DATABASES = {
    "mysql": None,
    "postgresql": "postgres",
}


class LegacySource:
    """
    Connection to the legacy store.

    Usage:
        source = LegacySource.from_settings()
        try:
            catalogs = source.list_catalogs()
            tables = source.extract(TABLE_NAMES)
        finally:
            source.close()
    """

    def __init__(self, url: str | URL):
        self.url = url
        self._engine: Engine | None = None

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "LegacySource":
        return cls(config.legacy_database_url())

    @property
    def catalog(self) -> str | None:
        return make_url(self.url).database

    @property
    def server_url(self) -> URL:
        """The source URL with no catalog selected, for server-level listings."""
        url = make_url(self.url)
        backend = url.get_backend_name()
        if backend in SERVER_DATABASES:
            return url.set(database=SERVER_DATABASES[backend])
        return url

    def _get_engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(self.url, pool_pre_ping=True)
        return self._engine

    def _connect(self, engine: Engine | None = None) -> Connection:
        try:
            conn = (engine or self._get_engine()).connect()
        except SQLAlchemyError as e:
            raise SourceConnectionError(f"Cannot connect to legacy database: {e}") from e

        try:
            statement = READ_ONLY_STATEMENTS.get(conn.dialect.name)
            if statement:
                conn.execute(text(statement))
        except SQLAlchemyError as e:
            conn.close()
            raise SourceConnectionError(f"Cannot open a read-only session: {e}") from e

        return conn

    def list_catalogs(self) -> list[str]:
        """
        List databases visible to the migration user.

        Runs on its own short-lived connection with no catalog selected, so
        the listing still works when the configured catalog is wrong.
        """
        engine = create_engine(self.server_url, pool_pre_ping=True)
        try:
            conn = self._connect(engine)
            try:
                query = CATALOG_QUERIES.get(conn.dialect.name)
                if query:
                    catalogs = list(conn.execute(text(query)).scalars())
                else:
                    catalogs = inspect(conn).get_schema_names()
            except SQLAlchemyError as e:
                raise SourceConnectionError(f"Cannot list catalogs: {e}") from e
            finally:
                conn.close()
        finally:
            engine.dispose()

        logger.info(f"Available catalogs: {catalogs}")
        if self.catalog and query and self.catalog not in catalogs:
            logger.warning(f"Configured catalog '{self.catalog}' is not among the available catalogs")
        return catalogs

    def extract(self, table_names: list[str]) -> dict[str, list[dict[str, Any]]]:
        """
        Snapshot every named table with a plain SELECT *.

        Args:
            table_names: tables to read, in the order they are queried

        Returns:
            Mapping of table name to its rows, each row a plain dict

        Raises:
            SourceConnectionError: the connection could not be opened
            ExtractionError: a table query failed
        """
        conn = self._connect()
        tables: dict[str, list[dict[str, Any]]] = {}
        try:
            quote = conn.dialect.identifier_preparer.quote
            for name in table_names:
                try:
                    result = conn.execute(text(f"SELECT * FROM {quote(name)}"))
                    tables[name] = [dict(row._mapping) for row in result]
                except SQLAlchemyError as e:
                    raise ExtractionError(name, str(e)) from e
                logger.info(f"✓ {name}: {len(tables[name])} rows")
        finally:
            conn.close()

        return tables

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
