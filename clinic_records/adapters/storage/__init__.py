"""Storage adapters for Clinic Records.

This module contains storage adapters that implement the StoragePort interface
for persisting the four kinds of clinic files.
"""

from clinic_records.adapters.storage.duckdb_adapter import DuckDBAdapter
from clinic_records.adapters.storage.postgresql_adapter import PostgreSQLAdapter

__all__ = ["DuckDBAdapter", "PostgreSQLAdapter"]
