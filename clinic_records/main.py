"""Storage bootstrap for Clinic Records.

This module builds the configured storage adapter and prepares it for use.
Both the API lifespan and the CLI commands go through these helpers, so a
process always owns exactly one explicitly created adapter.

Architecture:
    - Follows Hexagonal Architecture principles
    - Storage adapter is selected via the configuration manager
    - The caller that creates the adapter is responsible for closing it
"""

import logging
from typing import Optional

from clinic_records.adapters.storage import DuckDBAdapter, PostgreSQLAdapter
from clinic_records.domain.ports import Result, StoragePort
from clinic_records.domain.seed import seed_demo_records
from clinic_records.infrastructure.config_manager import DatabaseConfig, get_database_config

logger = logging.getLogger(__name__)


def create_storage_adapter(db_config: Optional[DatabaseConfig] = None) -> StoragePort:
    """Create storage adapter based on configuration.

    Parameters:
        db_config: Database configuration; loaded from the environment if omitted

    Returns:
        StoragePort: Configured (not yet initialized) storage adapter

    Raises:
        ValueError: If database type is unsupported
    """
    db_config = db_config or get_database_config()

    if db_config.db_type == "duckdb":
        logger.info(f"Initializing DuckDB adapter with path: {db_config.db_path or ':memory:'}")
        return DuckDBAdapter(db_config=db_config)
    elif db_config.db_type == "postgresql":
        logger.info(f"Initializing PostgreSQL adapter with host: {db_config.host}")
        return PostgreSQLAdapter(db_config=db_config)
    else:
        raise ValueError(f"Unsupported database type: {db_config.db_type}")


def bootstrap_storage(storage: StoragePort, seed: bool = False) -> Result[int]:
    """Create the record tables and optionally load the demo records.

    Parameters:
        storage: Storage adapter to prepare
        seed: Insert demo records that are not present yet

    Returns:
        Result[int]: Number of demo records inserted (0 when not seeding)
    """
    logger.info("Initializing storage schema...")
    schema_result = storage.initialize_schema()
    if schema_result.is_failure():
        logger.error(f"Failed to initialize schema: {schema_result.error}")
        return Result.failure_result(
            schema_result.error,
            error_type=schema_result.error_type,
            error_details=schema_result.error_details
        )

    if not seed:
        return Result.success_result(0)

    return seed_demo_records(storage)
