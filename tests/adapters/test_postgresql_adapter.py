"""Tests for the PostgreSQL adapter using mocked psycopg2 connections.

No PostgreSQL server is needed: the adapter's ``pool`` module is patched so
every connection and cursor is a MagicMock.
"""

from datetime import datetime
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from clinic_records.adapters.storage.postgresql_adapter import PostgreSQLAdapter
from clinic_records.domain.kinds import FAMILY_SCHEMA, PERSONAL_SCHEMA
from clinic_records.domain.ports import StorageError
from clinic_records.infrastructure.config_manager import DatabaseConfig


@pytest.fixture
def mock_psycopg2():
    """Patch ``pool`` as imported by the adapter (``from psycopg2 import pool``)."""
    with patch('clinic_records.adapters.storage.postgresql_adapter.pool') as mock_pool_module:
        mock_pool = MagicMock()
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_conn.cursor.return_value.__enter__.return_value = mock_cursor
        mock_pool.getconn.return_value = mock_conn

        mock_threaded_pool_class = MagicMock(return_value=mock_pool)
        mock_pool_module.ThreadedConnectionPool = mock_threaded_pool_class

        yield {
            'pool': mock_pool,
            'conn': mock_conn,
            'cursor': mock_cursor,
            'ThreadedConnectionPool': mock_threaded_pool_class,
        }


@pytest.fixture
def db_config():
    return DatabaseConfig(
        db_type="postgresql",
        host="db.internal",
        port=5433,
        database="clinic",
        username="records",
        password="s3cret",
        pool_size=3,
        max_overflow=2,
    )


@pytest.fixture
def adapter(mock_psycopg2, db_config):
    adapter = PostgreSQLAdapter(db_config=db_config)
    yield adapter
    adapter.close()


def family_row():
    return {
        "id": "FAM-1",
        "head_name": "Michael Miller",
        "member_count": 4,
        "registration_date": datetime(2024, 1, 1),
        "expiry_date": datetime(2026, 1, 1),
    }


class TestInitialization:
    def test_requires_configuration(self):
        with pytest.raises(StorageError):
            PostgreSQLAdapter()

    def test_rejects_duckdb_config(self):
        with pytest.raises(StorageError):
            PostgreSQLAdapter(db_config=DatabaseConfig(db_type="duckdb"))

    def test_connection_params_from_fields(self, adapter):
        assert adapter.connection_params == {
            "host": "db.internal",
            "port": 5433,
            "database": "clinic",
            "user": "records",
            "sslmode": "require",
            "password": "s3cret",
        }

    def test_connection_string_is_parsed(self, mock_psycopg2):
        adapter = PostgreSQLAdapter(connection_string="postgresql://alice:pw@pg.example:6543/records?sslmode=disable")
        assert adapter.connection_params["host"] == "pg.example"
        assert adapter.connection_params["port"] == 6543
        assert adapter.connection_params["sslmode"] == "disable"

    def test_pool_created_lazily_with_overflow(self, adapter, mock_psycopg2):
        mock_psycopg2['ThreadedConnectionPool'].assert_not_called()

        adapter.initialize_schema()

        kwargs = mock_psycopg2['ThreadedConnectionPool'].call_args.kwargs
        assert kwargs["minconn"] == 1
        assert kwargs["maxconn"] == 5


class TestOperations:
    def test_initialize_schema_commits(self, adapter, mock_psycopg2):
        result = adapter.initialize_schema()

        assert result.is_success()
        statement = mock_psycopg2['cursor'].execute.call_args.args[0]
        for table in ("personal_files", "family_files", "referral_files", "emergency_files"):
            assert f"CREATE TABLE IF NOT EXISTS {table}" in statement
        mock_psycopg2['conn'].commit.assert_called_once()
        mock_psycopg2['pool'].putconn.assert_called_once_with(mock_psycopg2['conn'])

    def test_fetch_all_returns_rows(self, adapter, mock_psycopg2):
        mock_psycopg2['cursor'].fetchall.return_value = [family_row()]

        result = adapter.fetch_all(FAMILY_SCHEMA)

        assert result.value == [family_row()]

    def test_fetch_one_missing(self, adapter, mock_psycopg2):
        mock_psycopg2['cursor'].fetchall.return_value = []

        result = adapter.fetch_one(PERSONAL_SCHEMA, "SJMC-1")

        assert result.is_success()
        assert result.value is None
        assert mock_psycopg2['cursor'].execute.call_args.args[1] == ["SJMC-1"]

    def test_insert_binds_values_in_column_order(self, adapter, mock_psycopg2):
        result = adapter.insert(FAMILY_SCHEMA, family_row())

        assert result.value == "FAM-1"
        params = mock_psycopg2['cursor'].execute.call_args.args[1]
        assert params == ["FAM-1", "Michael Miller", 4, datetime(2024, 1, 1), datetime(2026, 1, 1)]
        mock_psycopg2['cursor'].fetchall.assert_not_called()
        mock_psycopg2['conn'].commit.assert_called_once()

    def test_replace_reports_match(self, adapter, mock_psycopg2):
        mock_psycopg2['cursor'].fetchall.return_value = [{"id": "FAM-1"}]
        assert adapter.replace(FAMILY_SCHEMA, "FAM-1", family_row()).value is True

        params = mock_psycopg2['cursor'].execute.call_args.args[1]
        assert params[-1] == "FAM-1"
        assert params[0] == "Michael Miller"

    def test_replace_missing(self, adapter, mock_psycopg2):
        mock_psycopg2['cursor'].fetchall.return_value = []
        assert adapter.replace(FAMILY_SCHEMA, "FAM-1", family_row()).value is False

    def test_delete(self, adapter, mock_psycopg2):
        mock_psycopg2['cursor'].fetchall.return_value = [{"id": "FAM-1"}]
        assert adapter.delete(FAMILY_SCHEMA, "FAM-1").value is True

    def test_tally(self, adapter, mock_psycopg2):
        mock_psycopg2['cursor'].fetchall.return_value = [
            {"total": 5, "weekly": 1, "expired": 2, "active": 3}
        ]
        now = datetime(2024, 3, 1)
        since = datetime(2024, 2, 23)

        result = adapter.tally(FAMILY_SCHEMA, now=now, registered_since=since)

        assert result.value == {"total": 5, "weekly": 1, "expired": 2, "active": 3}
        assert mock_psycopg2['cursor'].execute.call_args.args[1] == [since, now, now]


class TestFailures:
    def test_execute_error_rolls_back(self, adapter, mock_psycopg2):
        mock_psycopg2['cursor'].execute.side_effect = Exception("relation does not exist")

        result = adapter.fetch_all(PERSONAL_SCHEMA)

        assert result.is_failure()
        assert result.error_type == "StorageError"
        assert result.error_details["table"] == "personal_files"
        mock_psycopg2['conn'].rollback.assert_called_once()
        mock_psycopg2['conn'].commit.assert_not_called()
        mock_psycopg2['pool'].putconn.assert_called_once_with(mock_psycopg2['conn'])

    @pytest.mark.parametrize("error", [
        psycopg2.IntegrityError("duplicate key value violates unique constraint"),
        psycopg2.DataError("value too long for type character varying(255)"),
    ])
    def test_rejected_row_is_a_constraint_error(self, adapter, mock_psycopg2, error):
        mock_psycopg2['cursor'].execute.side_effect = error

        result = adapter.insert(FAMILY_SCHEMA, family_row())

        assert result.is_failure()
        assert result.error_type == "StorageConstraintError"
        mock_psycopg2['conn'].rollback.assert_called_once()

    def test_pool_creation_failure(self, adapter, mock_psycopg2):
        mock_psycopg2['ThreadedConnectionPool'].side_effect = Exception("could not connect")

        result = adapter.query("SELECT 1")

        assert result.is_failure()
        assert "could not connect" in result.error
        assert "s3cret" not in result.error

    def test_close_releases_pool(self, adapter, mock_psycopg2):
        adapter.initialize_schema()
        adapter.close()

        mock_psycopg2['pool'].closeall.assert_called_once()
        assert adapter._connection_pool is None
