"""Statistics aggregator.

Derives per-kind totals for the dashboard: how many files exist, how many
were registered in the last week, and how many are active or expired.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from pydantic import BaseModel, Field

from clinic_records.domain.kinds import SCHEMAS, RecordKind
from clinic_records.domain.ports import Result, StoragePort
from clinic_records.domain.utils import utc_now

logger = logging.getLogger(__name__)

WEEKLY_WINDOW = timedelta(days=7)


class KindStats(BaseModel):
    """Counts for one record kind.

    ``active + expired == total`` always holds because both are evaluated
    against the same instant.
    """
    total: int = Field(0, ge=0, description="All records of the kind")
    weekly: int = Field(0, ge=0, description="Registered within the last 7 days")
    expired: int = Field(0, ge=0, description="Expiry date before now")
    active: int = Field(0, ge=0, description="Expiry date at or after now")


class StatsSummary(BaseModel):
    """Dashboard statistics keyed by kind name."""
    personal: KindStats
    family: KindStats
    referral: KindStats
    emergency: KindStats

    def for_kind(self, kind: RecordKind) -> KindStats:
        return getattr(self, kind.value)


class StatisticsAggregator:
    """Aggregates record counts across the four kinds."""

    def __init__(self, storage: StoragePort, clock: Callable[[], datetime] = utc_now):
        """Initialize statistics aggregator.

        Parameters:
            storage: Storage adapter instance
            clock: Source of "now" when ``compute_stats`` is not given one
        """
        self.storage = storage
        self.clock = clock

    def compute_stats(self, now: Optional[datetime] = None) -> Result[StatsSummary]:
        """Compute total/weekly/expired/active for every kind.

        ``now`` is fixed once at the start and reused for every kind, so
        the expired/active split is consistent across the whole summary.

        Parameters:
            now: Snapshot instant; defaults to the aggregator's clock

        Returns:
            Result[StatsSummary]: Summary or the first storage failure
        """
        snapshot = now or self.clock()
        week_start = snapshot - WEEKLY_WINDOW

        per_kind: dict[str, KindStats] = {}
        for kind, schema in SCHEMAS.items():
            result = self.storage.tally(schema, now=snapshot, registered_since=week_start)
            if result.is_failure():
                logger.error(f"Failed to compute stats for {kind.value}: {result.error}")
                return Result.failure_result(
                    result.error,
                    error_type=result.error_type or "StorageError",
                    error_details={"kind": kind.value, **(result.error_details or {})}
                )
            per_kind[kind.value] = KindStats(**result.value)

        logger.debug(f"Computed stats at {snapshot.isoformat()}")
        return Result.success_result(StatsSummary(**per_kind))
