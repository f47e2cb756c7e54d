"""Domain layer for Clinic Records.

This module contains the record models, the kind schemas, the generic
record store and the statistics aggregator. Domain code depends only on
pydantic and the standard library.
"""

from .kinds import SCHEMAS, KindSchema, RecordKind, get_schema
from .records import (
    DeleteResult,
    FileRecord,
    Gender,
    RecordStatus,
)
from .record_store import RecordStore, apply_partial_update, build_record_stores
from .statistics import KindStats, StatisticsAggregator, StatsSummary

__all__ = [
    "SCHEMAS",
    "KindSchema",
    "RecordKind",
    "get_schema",
    "DeleteResult",
    "FileRecord",
    "Gender",
    "RecordStatus",
    "RecordStore",
    "apply_partial_update",
    "build_record_stores",
    "KindStats",
    "StatisticsAggregator",
    "StatsSummary",
]
