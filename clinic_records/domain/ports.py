"""Domain Ports - Abstract Contracts for Record Persistence.

This module defines the Port interface that storage adapters must implement,
plus the Result type and exception hierarchy shared across layers.
Following Hexagonal Architecture, the domain core defines what it needs,
not how it's provided.

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - DuckDB and PostgreSQL adapters implement ``StoragePort``
    - One port serves all four record kinds; the ``KindSchema`` argument
      selects the table and its fixed column list
    - Expected failures travel as ``Result`` values, not exceptions
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar, Union

from clinic_records.domain.kinds import KindSchema

T = TypeVar('T')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Error message (only present if success=False)
        error_type: Type of error (StorageError, etc.)
        error_details: Additional error context (operation, table, ...)

    Example:
        ```python
        result = storage.fetch_one(PERSONAL_SCHEMA, "SJMC-1")
        if result.is_success():
            row = result.value
        else:
            logger.error(result.error)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Type of error; defaults to the exception class name
            error_details: Additional context

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")

        if error_details is None and isinstance(error, StorageError):
            error_details = {"operation": error.operation, **error.details}

        return cls(
            success=False,
            value=None,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {}
        )

    def is_success(self) -> bool:
        """Check if result is successful."""
        return self.success

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return not self.success


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class RecordsError(Exception):
    """Base exception for all clinic-records errors."""
    pass


class RecordValidationError(RecordsError):
    """Raised when a record would violate a domain rule.

    Attributes:
        record_id: The record being changed, if any
        details: Field-level context
    """

    def __init__(self, message: str, record_id: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.record_id = record_id
        self.details = details or {}


class StorageError(RecordsError):
    """Raised by storage adapters when the backing database fails.

    Attributes:
        operation: Adapter operation that failed (connect, fetch_all, ...)
        details: Non-sensitive context (table name, db path)
    """

    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.operation = operation
        self.details = details or {}


class StorageConstraintError(StorageError):
    """Raised by storage adapters when the database rejects a row.

    Covers constraint violations and values the column types cannot hold.
    The database is reachable; the data is at fault.
    """
    pass


class StorageUnavailableError(RecordsError):
    """Raised by the record store when persistence cannot serve a request.

    Distinct from "not found": a missing id is reported as ``None`` or
    ``success=False``, never as this exception.
    """

    def __init__(self, message: str, operation: Optional[str] = None, result: Optional[Result] = None):
        super().__init__(message)
        self.operation = operation
        self.result = result


# ============================================================================
# Storage Port
# ============================================================================

class StoragePort(ABC):
    """Abstract contract for record persistence.

    Rows are plain dicts keyed by the schema's snake_case column names.
    Implementations must only interpolate identifiers taken from
    ``KindSchema.table_name`` / ``KindSchema.columns`` and bind every value
    as a parameter.
    """

    @abstractmethod
    def initialize_schema(self) -> Result[None]:
        """Create the four record tables if they do not exist."""
        pass

    @abstractmethod
    def fetch_all(self, schema: KindSchema) -> Result[list[dict[str, Any]]]:
        """Return every row of a kind, newest ``registration_date`` first."""
        pass

    @abstractmethod
    def fetch_one(self, schema: KindSchema, record_id: str) -> Result[Optional[dict[str, Any]]]:
        """Return the row with ``record_id`` or ``None`` when absent."""
        pass

    @abstractmethod
    def insert(self, schema: KindSchema, row: dict[str, Any]) -> Result[str]:
        """Insert a full row; returns the inserted id."""
        pass

    @abstractmethod
    def replace(self, schema: KindSchema, record_id: str, row: dict[str, Any]) -> Result[bool]:
        """Overwrite every non-id column of ``record_id``.

        Returns:
            Result[bool]: True if a row matched, False if the id is absent
        """
        pass

    @abstractmethod
    def delete(self, schema: KindSchema, record_id: str) -> Result[bool]:
        """Delete ``record_id``; True if a row was removed."""
        pass

    @abstractmethod
    def tally(
        self,
        schema: KindSchema,
        now: datetime,
        registered_since: datetime
    ) -> Result[dict[str, int]]:
        """Count a kind's rows in one statement.

        Parameters:
            schema: Kind to count
            now: Snapshot instant separating active from expired
            registered_since: Lower bound for the weekly count

        Returns:
            Result[dict[str, int]]: keys ``total``, ``weekly``, ``expired``, ``active``
        """
        pass

    @abstractmethod
    def query(self, sql: str, params: Optional[list] = None) -> Result[list[dict[str, Any]]]:
        """Run a read-only statement; used by health checks."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release connections."""
        pass
