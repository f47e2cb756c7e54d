"""PostgreSQL Storage Adapter.

This adapter implements the StoragePort contract for the four record
tables on PostgreSQL, using a psycopg2 threaded connection pool.

Security Impact:
    - Connection credentials are never logged
    - SSL mode defaults to 'require' when not configured
    - Identifiers are composed with psycopg2.sql; values are always bound

Architecture:
    - Implements StoragePort (Hexagonal Architecture)
    - The pool is owned by the adapter: created on first use (normally
      ``initialize_schema`` at startup) and released by ``close()``
    - Each operation borrows one connection and commits or rolls back
"""

import logging
from datetime import datetime
from typing import Any, Optional

import psycopg2
from psycopg2 import pool, sql
from psycopg2.extras import RealDictCursor

from clinic_records.domain.kinds import SCHEMAS, KindSchema
from clinic_records.domain.ports import Result, StorageConstraintError, StorageError, StoragePort
from clinic_records.infrastructure.config_manager import DatabaseConfig

logger = logging.getLogger(__name__)

TABLE_DEFINITIONS = {
    "personal_files": """
        CREATE TABLE IF NOT EXISTS personal_files (
            id VARCHAR(32) PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            age INTEGER NOT NULL,
            gender VARCHAR(10) NOT NULL CHECK (gender IN ('Male', 'Female', 'Other')),
            registration_date TIMESTAMP NOT NULL,
            expiry_date TIMESTAMP NOT NULL
        )
    """,
    "family_files": """
        CREATE TABLE IF NOT EXISTS family_files (
            id VARCHAR(32) PRIMARY KEY,
            head_name VARCHAR(255) NOT NULL,
            member_count INTEGER NOT NULL,
            registration_date TIMESTAMP NOT NULL,
            expiry_date TIMESTAMP NOT NULL
        )
    """,
    "referral_files": """
        CREATE TABLE IF NOT EXISTS referral_files (
            id VARCHAR(32) PRIMARY KEY,
            referral_name VARCHAR(255) NOT NULL,
            patient_count INTEGER NOT NULL,
            registration_date TIMESTAMP NOT NULL,
            expiry_date TIMESTAMP NOT NULL
        )
    """,
    "emergency_files": """
        CREATE TABLE IF NOT EXISTS emergency_files (
            id VARCHAR(32) PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            age INTEGER NOT NULL,
            gender VARCHAR(10) NOT NULL CHECK (gender IN ('Male', 'Female', 'Other')),
            registration_date TIMESTAMP NOT NULL,
            expiry_date TIMESTAMP NOT NULL
        )
    """,
}


def _columns(schema: KindSchema, exclude: tuple[str, ...] = ()) -> list[str]:
    return [column for column in schema.columns if column not in exclude]


def _identifiers(columns: list[str]) -> sql.Composable:
    return sql.SQL(", ").join(sql.Identifier(column) for column in columns)


class PostgreSQLAdapter(StoragePort):
    """PostgreSQL implementation of StoragePort.

    Parameters:
        db_config: DatabaseConfig from configuration manager (preferred)
        connection_string: PostgreSQL URL, used when no db_config is given

    Example Usage:
        ```python
        adapter = PostgreSQLAdapter(db_config=get_database_config())
        result = adapter.initialize_schema()
        ...
        adapter.close()
        ```
    """

    def __init__(
        self,
        db_config: Optional[DatabaseConfig] = None,
        connection_string: Optional[str] = None,
    ):
        """Initialize PostgreSQL adapter.

        Raises:
            StorageError: If configuration is missing or not for PostgreSQL
        """
        if db_config is None:
            if not connection_string:
                raise StorageError(
                    "PostgreSQL adapter requires either db_config or connection_string",
                    operation="__init__"
                )
            db_config = DatabaseConfig(db_type="postgresql", connection_string=connection_string)

        if db_config.db_type != "postgresql":
            raise StorageError(
                f"DatabaseConfig type '{db_config.db_type}' does not match PostgreSQL adapter",
                operation="__init__"
            )

        self.db_config = db_config
        self._connection_pool: Optional[pool.ThreadedConnectionPool] = None

        if db_config.connection_string and not db_config.host:
            self.connection_params: dict[str, Any] = {"dsn": db_config.connection_string.get_secret_value()}
        else:
            if not all([db_config.host, db_config.database]):
                raise StorageError(
                    "PostgreSQL DatabaseConfig requires host and database",
                    operation="__init__"
                )
            self.connection_params = {
                "host": db_config.host,
                "port": db_config.port or 5432,
                "database": db_config.database,
                "user": db_config.username,
                "sslmode": db_config.ssl_mode or "require",
            }
            if db_config.password:
                self.connection_params["password"] = db_config.password.get_secret_value()

        self.pool_size = db_config.pool_size
        self.max_overflow = db_config.max_overflow

    def _get_connection_pool(self) -> pool.ThreadedConnectionPool:
        """Get or create the connection pool.

        Raises:
            StorageError: If the pool cannot be created
        """
        if self._connection_pool is None:
            try:
                self._connection_pool = pool.ThreadedConnectionPool(
                    minconn=1,
                    maxconn=self.pool_size + self.max_overflow,
                    **self.connection_params
                )
                logger.info("Created PostgreSQL connection pool")
            except Exception as e:
                raise StorageError(
                    f"Failed to create PostgreSQL connection pool: {str(e)}",
                    operation="connect",
                    details={"host": self.connection_params.get("host", "N/A")}
                )
        return self._connection_pool

    def _get_connection(self):
        try:
            return self._get_connection_pool().getconn()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(
                f"Failed to get connection from pool: {str(e)}",
                operation="get_connection"
            )

    def _return_connection(self, conn) -> None:
        try:
            self._get_connection_pool().putconn(conn)
        except Exception as e:
            logger.warning(f"Error returning connection to pool: {str(e)}")

    def _run(
        self,
        operation: str,
        statement: sql.Composable | str,
        params: Optional[list] = None,
        schema: Optional[KindSchema] = None,
        fetch: bool = True,
    ) -> Result[list[dict[str, Any]]]:
        """Execute one statement in its own transaction.

        Parameters:
            operation: Name used in logs and StorageError
            statement: SQL text or composed statement
            params: Bound parameter values
            schema: Kind being accessed, for error context
            fetch: Whether the statement returns rows

        Returns:
            Result[list[dict]]: Fetched rows (empty when ``fetch`` is False)
        """
        conn = None
        try:
            conn = self._get_connection()
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(statement, params)
                rows = [dict(row) for row in cursor.fetchall()] if fetch else []
            conn.commit()
            return Result.success_result(rows)
        except Exception as e:
            if conn is not None:
                try:
                    conn.rollback()
                except Exception as rollback_error:
                    logger.warning(f"Rollback failed: {str(rollback_error)}")
            error_msg = f"Failed to {operation}: {str(e)}"
            logger.error(error_msg, exc_info=True)
            details = {"table": schema.table_name} if schema else {}
            # the server is reachable but refuses the row
            rejected = isinstance(e, (psycopg2.IntegrityError, psycopg2.DataError))
            error_class = StorageConstraintError if rejected else StorageError
            return Result.failure_result(error_class(error_msg, operation=operation, details=details))
        finally:
            if conn is not None:
                self._return_connection(conn)

    def initialize_schema(self) -> Result[None]:
        """Create the four record tables and their registration_date indexes."""
        statements = []
        for schema in SCHEMAS.values():
            statements.append(TABLE_DEFINITIONS[schema.table_name])
            statements.append(
                f"CREATE INDEX IF NOT EXISTS idx_{schema.table_name}_registration "
                f"ON {schema.table_name} (registration_date DESC)"
            )

        result = self._run("initialize schema", "\n;".join(statements), fetch=False)
        if result.is_failure():
            return Result.failure_result(result.error, error_type=result.error_type, error_details=result.error_details)

        logger.info("PostgreSQL schema initialized")
        return Result.success_result(None)

    def fetch_all(self, schema: KindSchema) -> Result[list[dict[str, Any]]]:
        statement = sql.SQL("SELECT {columns} FROM {table} ORDER BY registration_date DESC, id").format(
            columns=_identifiers(_columns(schema)),
            table=sql.Identifier(schema.table_name),
        )
        return self._run("fetch records", statement, schema=schema)

    def fetch_one(self, schema: KindSchema, record_id: str) -> Result[Optional[dict[str, Any]]]:
        statement = sql.SQL("SELECT {columns} FROM {table} WHERE id = %s").format(
            columns=_identifiers(_columns(schema)),
            table=sql.Identifier(schema.table_name),
        )
        result = self._run("fetch record", statement, [record_id], schema=schema)
        if result.is_failure():
            return result
        return Result.success_result(result.value[0] if result.value else None)

    def insert(self, schema: KindSchema, row: dict[str, Any]) -> Result[str]:
        columns = _columns(schema)
        statement = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
            table=sql.Identifier(schema.table_name),
            columns=_identifiers(columns),
            values=sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )
        result = self._run("insert record", statement, [row[column] for column in columns], schema=schema, fetch=False)
        if result.is_failure():
            return result
        return Result.success_result(row["id"])

    def replace(self, schema: KindSchema, record_id: str, row: dict[str, Any]) -> Result[bool]:
        columns = _columns(schema, exclude=("id",))
        statement = sql.SQL("UPDATE {table} SET {assignments} WHERE id = %s RETURNING id").format(
            table=sql.Identifier(schema.table_name),
            assignments=sql.SQL(", ").join(
                sql.SQL("{} = %s").format(sql.Identifier(column)) for column in columns
            ),
        )
        result = self._run(
            "update record", statement, [row[column] for column in columns] + [record_id], schema=schema
        )
        if result.is_failure():
            return result
        return Result.success_result(len(result.value) > 0)

    def delete(self, schema: KindSchema, record_id: str) -> Result[bool]:
        statement = sql.SQL("DELETE FROM {table} WHERE id = %s RETURNING id").format(
            table=sql.Identifier(schema.table_name),
        )
        result = self._run("delete record", statement, [record_id], schema=schema)
        if result.is_failure():
            return result
        return Result.success_result(len(result.value) > 0)

    def tally(
        self,
        schema: KindSchema,
        now: datetime,
        registered_since: datetime
    ) -> Result[dict[str, int]]:
        statement = sql.SQL(
            "SELECT COUNT(*) AS total, "
            "COUNT(*) FILTER (WHERE registration_date >= %s) AS weekly, "
            "COUNT(*) FILTER (WHERE expiry_date < %s) AS expired, "
            "COUNT(*) FILTER (WHERE expiry_date >= %s) AS active "
            "FROM {table}"
        ).format(table=sql.Identifier(schema.table_name))
        result = self._run("count records", statement, [registered_since, now, now], schema=schema)
        if result.is_failure():
            return result
        row = result.value[0] if result.value else {}
        return Result.success_result({
            key: int(row.get(key) or 0) for key in ("total", "weekly", "expired", "active")
        })

    def query(self, sql_text: str, params: Optional[list] = None) -> Result[list[dict[str, Any]]]:
        return self._run("run query", sql_text, params)

    def close(self) -> None:
        """Close the connection pool and release resources."""
        if self._connection_pool is not None:
            try:
                self._connection_pool.closeall()
                logger.info("Closed PostgreSQL connection pool")
            except Exception as e:
                logger.warning(f"Error closing connection pool: {str(e)}")
            finally:
                self._connection_pool = None
