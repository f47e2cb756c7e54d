"""Demo data for a fresh database.

The demo set mirrors the records the clinic used when first setting up
the dashboard: a handful of files per kind, some registered this week,
a few already expired. Dates are relative to the moment of seeding.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from clinic_records.domain.kinds import RecordKind, get_schema
from clinic_records.domain.ports import Result, StoragePort
from clinic_records.domain.utils import add_years, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DemoRecord:
    """One seed row.

    Attributes:
        kind: Record kind
        record_id: Fixed id so reseeding is idempotent
        fields: Kind-specific column values
        registered_days_ago: Registration date offset from now
        expires_in_years: Expiry offset from now, in years
        expires_in_days: Extra expiry offset from now, in days (may be negative)
    """
    kind: RecordKind
    record_id: str
    fields: dict[str, Any]
    registered_days_ago: int
    expires_in_years: int = 0
    expires_in_days: int = 0

    def to_row(self, now: datetime) -> dict[str, Any]:
        return {
            "id": self.record_id,
            **self.fields,
            "registration_date": now - timedelta(days=self.registered_days_ago),
            "expiry_date": add_years(now, self.expires_in_years) + timedelta(days=self.expires_in_days),
        }


DEMO_RECORDS: tuple[DemoRecord, ...] = (
    DemoRecord(RecordKind.PERSONAL, "SJMC-1", {"name": "John Doe", "age": 34, "gender": "Male"}, 5, expires_in_years=1),
    DemoRecord(RecordKind.PERSONAL, "SJMC-2", {"name": "Jane Smith", "age": 28, "gender": "Female"}, 12, expires_in_years=1),
    DemoRecord(RecordKind.PERSONAL, "SJMC-3", {"name": "Peter Jones", "age": 52, "gender": "Male"}, 45, expires_in_days=-10),
    DemoRecord(RecordKind.PERSONAL, "SJMC-4", {"name": "Mary Williams", "age": 41, "gender": "Female"}, 2, expires_in_years=1),
    DemoRecord(RecordKind.FAMILY, "FAM-1", {"head_name": "Michael Miller", "member_count": 4}, 20, expires_in_years=2),
    DemoRecord(RecordKind.FAMILY, "FAM-2", {"head_name": "Jessica Wilson", "member_count": 3}, 60, expires_in_years=2),
    DemoRecord(RecordKind.REFERRAL, "REF-1", {"referral_name": "Dr. Anderson", "patient_count": 12}, 10, expires_in_years=5),
    DemoRecord(RecordKind.REFERRAL, "REF-2", {"referral_name": "General Hospital", "patient_count": 45}, 180, expires_in_days=-5),
    DemoRecord(RecordKind.EMERGENCY, "EMG-1", {"name": "Anonymous Patient 1", "age": 45, "gender": "Male"}, 1, expires_in_years=1),
)


def seed_demo_records(storage: StoragePort, now: Optional[datetime] = None) -> Result[int]:
    """Insert the demo records that are not already present.

    Parameters:
        storage: Initialized storage adapter
        now: Reference instant for the relative dates

    Returns:
        Result[int]: Number of rows inserted, or the first storage failure
    """
    reference = now or utc_now()
    inserted = 0

    for demo in DEMO_RECORDS:
        schema = get_schema(demo.kind)
        existing = storage.fetch_one(schema, demo.record_id)
        if existing.is_failure():
            return Result.failure_result(existing.error, error_type=existing.error_type)
        if existing.value is not None:
            continue

        # round-trip through the record model so seeds obey the same rules as API input
        record = schema.from_row(demo.to_row(reference))
        result = storage.insert(schema, schema.to_row(record))
        if result.is_failure():
            return Result.failure_result(result.error, error_type=result.error_type)
        inserted += 1

    logger.info(f"Seeded {inserted} demo records")
    return Result.success_result(inserted)
