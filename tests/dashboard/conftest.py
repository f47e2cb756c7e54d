"""Fixtures for API tests: an app bound to in-memory DuckDB and a fixed clock."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from clinic_records.dashboard.api.dependencies import get_clock
from clinic_records.dashboard.api.main import create_app
from clinic_records.domain.ports import StoragePort
from clinic_records.infrastructure.config_manager import DatabaseConfig
from clinic_records.infrastructure.settings import Settings


@pytest.fixture
def app_settings():
    app_settings = Settings(db_config=DatabaseConfig(db_type="duckdb"))
    app_settings.api_token = None
    app_settings.seed_demo_data = False
    app_settings.enable_hsts = False
    return app_settings


@pytest.fixture
def client(duckdb_storage, clock, app_settings):
    """Test client over a caller-owned DuckDB adapter."""
    app = create_app(app_settings, storage=duckdb_storage)
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def mock_storage_adapter():
    """Mock storage adapter for failure scenarios."""
    mock = Mock(spec=StoragePort)
    mock.db_config = DatabaseConfig(db_type="duckdb")
    return mock


@pytest.fixture
def mock_client(mock_storage_adapter, app_settings):
    app = create_app(app_settings, storage=mock_storage_adapter)
    with TestClient(app) as test_client:
        yield test_client
