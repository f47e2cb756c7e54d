"""DuckDB Storage Adapter.

This adapter implements the StoragePort contract for the four record
tables on DuckDB, an in-process database. It is the default backend and
also what the test suite runs against (in-memory).

Architecture:
    - Implements StoragePort (Hexagonal Architecture)
    - Table and column names come only from KindSchema; values are bound
    - One connection per adapter, opened on first use, closed by ``close()``
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import duckdb

from clinic_records.domain.kinds import SCHEMAS, KindSchema
from clinic_records.domain.ports import Result, StorageConstraintError, StorageError, StoragePort
from clinic_records.infrastructure.config_manager import DatabaseConfig

logger = logging.getLogger(__name__)

# the database is reachable but refuses the row
REJECTED_ROW_ERRORS = (
    duckdb.ConstraintException,
    duckdb.ConversionException,
    duckdb.OutOfRangeException,
)

TABLE_DEFINITIONS = {
    "personal_files": """
        CREATE TABLE IF NOT EXISTS personal_files (
            id VARCHAR PRIMARY KEY,
            name VARCHAR NOT NULL,
            age INTEGER NOT NULL,
            gender VARCHAR NOT NULL CHECK (gender IN ('Male', 'Female', 'Other')),
            registration_date TIMESTAMP NOT NULL,
            expiry_date TIMESTAMP NOT NULL
        )
    """,
    "family_files": """
        CREATE TABLE IF NOT EXISTS family_files (
            id VARCHAR PRIMARY KEY,
            head_name VARCHAR NOT NULL,
            member_count INTEGER NOT NULL,
            registration_date TIMESTAMP NOT NULL,
            expiry_date TIMESTAMP NOT NULL
        )
    """,
    "referral_files": """
        CREATE TABLE IF NOT EXISTS referral_files (
            id VARCHAR PRIMARY KEY,
            referral_name VARCHAR NOT NULL,
            patient_count INTEGER NOT NULL,
            registration_date TIMESTAMP NOT NULL,
            expiry_date TIMESTAMP NOT NULL
        )
    """,
    "emergency_files": """
        CREATE TABLE IF NOT EXISTS emergency_files (
            id VARCHAR PRIMARY KEY,
            name VARCHAR NOT NULL,
            age INTEGER NOT NULL,
            gender VARCHAR NOT NULL CHECK (gender IN ('Male', 'Female', 'Other')),
            registration_date TIMESTAMP NOT NULL,
            expiry_date TIMESTAMP NOT NULL
        )
    """,
}


def _column_list(schema: KindSchema) -> str:
    return ", ".join(f'"{column}"' for column in schema.columns)


class DuckDBAdapter(StoragePort):
    """DuckDB implementation of StoragePort.

    Parameters:
        db_config: DatabaseConfig from configuration manager (preferred)
        db_path: Path to DuckDB database file (or ':memory:' for in-memory)

    Example Usage:
        ```python
        adapter = DuckDBAdapter(db_config=get_database_config())
        result = adapter.initialize_schema()
        if result.is_success():
            rows = adapter.fetch_all(PERSONAL_SCHEMA).value
        adapter.close()
        ```
    """

    def __init__(
        self,
        db_config: Optional[DatabaseConfig] = None,
        db_path: Optional[str] = None,
    ):
        """Initialize DuckDB adapter.

        If both db_config and db_path are provided, db_config takes
        precedence. If neither is provided, the database is in-memory.

        Raises:
            StorageError: If db_config is not a DuckDB config or the
                database directory does not exist
        """
        if db_config:
            if db_config.db_type != "duckdb":
                raise StorageError(
                    f"DatabaseConfig type '{db_config.db_type}' does not match DuckDB adapter",
                    operation="__init__"
                )
            self.db_config = db_config
            self.db_path = db_config.db_path or ":memory:"
        else:
            self.db_path = db_path or ":memory:"
            if self.db_path != ":memory:" and not Path(self.db_path).parent.exists():
                raise StorageError(
                    f"Database directory does not exist: {Path(self.db_path).parent}",
                    operation="__init__"
                )
            self.db_config = DatabaseConfig(db_type="duckdb", db_path=self.db_path)

        self._connection: Optional[duckdb.DuckDBPyConnection] = None

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        """Get or create the DuckDB connection.

        Raises:
            StorageError: If the database cannot be opened
        """
        if self._connection is None:
            try:
                self._connection = duckdb.connect(self.db_path)
                logger.info(f"Connected to DuckDB database: {self.db_path}")
            except Exception as e:
                raise StorageError(
                    f"Failed to connect to DuckDB: {str(e)}",
                    operation="connect",
                    details={"db_path": self.db_path}
                )
        return self._connection

    def _failure(self, operation: str, error: Exception, schema: Optional[KindSchema] = None) -> Result:
        error_msg = f"Failed to {operation}: {str(error)}"
        logger.error(error_msg, exc_info=True)
        details = {"table": schema.table_name} if schema else {}
        error_class = StorageConstraintError if isinstance(error, REJECTED_ROW_ERRORS) else StorageError
        return Result.failure_result(error_class(error_msg, operation=operation, details=details))

    @staticmethod
    def _rows(cursor: duckdb.DuckDBPyConnection) -> list[dict[str, Any]]:
        columns = [description[0] for description in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def initialize_schema(self) -> Result[None]:
        """Create personal_files, family_files, referral_files and emergency_files."""
        try:
            conn = self._get_connection()
            for schema in SCHEMAS.values():
                conn.execute(TABLE_DEFINITIONS[schema.table_name])
            logger.info("DuckDB schema initialized")
            return Result.success_result(None)
        except Exception as e:
            return self._failure("initialize schema", e)

    def fetch_all(self, schema: KindSchema) -> Result[list[dict[str, Any]]]:
        try:
            cursor = self._get_connection().execute(
                f"SELECT {_column_list(schema)} FROM {schema.table_name} "
                "ORDER BY registration_date DESC, id"
            )
            return Result.success_result(self._rows(cursor))
        except Exception as e:
            return self._failure("fetch records", e, schema)

    def fetch_one(self, schema: KindSchema, record_id: str) -> Result[Optional[dict[str, Any]]]:
        try:
            cursor = self._get_connection().execute(
                f"SELECT {_column_list(schema)} FROM {schema.table_name} WHERE id = ?",
                [record_id]
            )
            rows = self._rows(cursor)
            return Result.success_result(rows[0] if rows else None)
        except Exception as e:
            return self._failure("fetch record", e, schema)

    def insert(self, schema: KindSchema, row: dict[str, Any]) -> Result[str]:
        try:
            placeholders = ", ".join("?" for _ in schema.columns)
            self._get_connection().execute(
                f"INSERT INTO {schema.table_name} ({_column_list(schema)}) VALUES ({placeholders})",
                [row[column] for column in schema.columns]
            )
            return Result.success_result(row["id"])
        except Exception as e:
            return self._failure("insert record", e, schema)

    def replace(self, schema: KindSchema, record_id: str, row: dict[str, Any]) -> Result[bool]:
        try:
            columns = [column for column in schema.columns if column != "id"]
            assignments = ", ".join(f'"{column}" = ?' for column in columns)
            cursor = self._get_connection().execute(
                f"UPDATE {schema.table_name} SET {assignments} WHERE id = ? RETURNING id",
                [row[column] for column in columns] + [record_id]
            )
            return Result.success_result(len(cursor.fetchall()) > 0)
        except Exception as e:
            return self._failure("update record", e, schema)

    def delete(self, schema: KindSchema, record_id: str) -> Result[bool]:
        try:
            cursor = self._get_connection().execute(
                f"DELETE FROM {schema.table_name} WHERE id = ? RETURNING id",
                [record_id]
            )
            return Result.success_result(len(cursor.fetchall()) > 0)
        except Exception as e:
            return self._failure("delete record", e, schema)

    def tally(
        self,
        schema: KindSchema,
        now: datetime,
        registered_since: datetime
    ) -> Result[dict[str, int]]:
        try:
            cursor = self._get_connection().execute(
                f"""
                SELECT
                    COUNT(*) AS total,
                    COUNT(*) FILTER (WHERE registration_date >= ?) AS weekly,
                    COUNT(*) FILTER (WHERE expiry_date < ?) AS expired,
                    COUNT(*) FILTER (WHERE expiry_date >= ?) AS active
                FROM {schema.table_name}
                """,
                [registered_since, now, now]
            )
            row = self._rows(cursor)[0]
            return Result.success_result({key: int(value or 0) for key, value in row.items()})
        except Exception as e:
            return self._failure("count records", e, schema)

    def query(self, sql: str, params: Optional[list] = None) -> Result[list[dict[str, Any]]]:
        try:
            cursor = self._get_connection().execute(sql, params or [])
            return Result.success_result(self._rows(cursor))
        except Exception as e:
            return self._failure("run query", e)

    def close(self) -> None:
        """Close storage connection and release resources."""
        if self._connection is not None:
            try:
                self._connection.close()
                logger.info("Closed DuckDB connection")
            except Exception as e:
                logger.warning(f"Error closing connection: {str(e)}")
            finally:
                self._connection = None
