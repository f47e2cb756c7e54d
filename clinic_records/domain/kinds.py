"""Kind Schemas - the per-category parameters of the generic record store.

Each of the four file kinds differs only in its field set, id prefix,
expiry duration and backing table. ``KindSchema`` bundles those so that
one ``RecordStore`` implementation and one pair of storage adapters serve
all four kinds.
"""

import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from clinic_records.domain.records import (
    EmergencyFile,
    EmergencyFileUpdate,
    FamilyFile,
    FamilyFileUpdate,
    FileRecord,
    NewEmergencyFile,
    NewFamilyFile,
    NewPersonalFile,
    NewReferralFile,
    PersonalFile,
    PersonalFileUpdate,
    RecordModel,
    ReferralFile,
    ReferralFileUpdate,
)
from clinic_records.domain.utils import add_years

ID_ALPHABET = string.digits + string.ascii_uppercase
ID_SUFFIX_LENGTH = 9


class RecordKind(str, Enum):
    """The four record categories; values double as URL and stats keys."""
    PERSONAL = "personal"
    FAMILY = "family"
    REFERRAL = "referral"
    EMERGENCY = "emergency"


@dataclass(frozen=True)
class KindSchema:
    """Static description of one record kind.

    Attributes:
        kind: Record kind
        label: Human-readable name for CLI output
        id_prefix: Prefix of generated ids (without the dash)
        duration_years: Years between registration and expiry
        table_name: Backing table
        fields: Kind-specific column names, in table order
        create_model: Payload model for ``create``
        update_model: Payload model for partial ``update``
        record_model: Stored record model
    """
    kind: RecordKind
    label: str
    id_prefix: str
    duration_years: int
    table_name: str
    fields: tuple[str, ...]
    create_model: type[RecordModel]
    update_model: type[RecordModel]
    record_model: type[FileRecord]

    @property
    def columns(self) -> tuple[str, ...]:
        """All table columns: id, kind-specific fields, then the two dates."""
        return ("id",) + self.fields + ("registration_date", "expiry_date")

    def new_id(self) -> str:
        """Generate ``PREFIX-XXXXXXXXX`` with a random base-36 uppercase suffix."""
        suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
        return f"{self.id_prefix}-{suffix}"

    def expiry_for(self, registered_at: datetime) -> datetime:
        return add_years(registered_at, self.duration_years)

    def to_row(self, record: FileRecord) -> dict[str, Any]:
        """Flatten a record into column -> value, with enums as their values."""
        row = {}
        for column in self.columns:
            value = getattr(record, column)
            row[column] = value.value if isinstance(value, Enum) else value
        return row

    def from_row(self, row: dict[str, Any]) -> FileRecord:
        return self.record_model.model_validate(row)


PERSONAL_SCHEMA = KindSchema(
    kind=RecordKind.PERSONAL,
    label="Personal",
    id_prefix="SJMC",
    duration_years=1,
    table_name="personal_files",
    fields=("name", "age", "gender"),
    create_model=NewPersonalFile,
    update_model=PersonalFileUpdate,
    record_model=PersonalFile,
)

FAMILY_SCHEMA = KindSchema(
    kind=RecordKind.FAMILY,
    label="Family",
    id_prefix="FAM",
    duration_years=2,
    table_name="family_files",
    fields=("head_name", "member_count"),
    create_model=NewFamilyFile,
    update_model=FamilyFileUpdate,
    record_model=FamilyFile,
)

REFERRAL_SCHEMA = KindSchema(
    kind=RecordKind.REFERRAL,
    label="Referral",
    id_prefix="REF",
    duration_years=5,
    table_name="referral_files",
    fields=("referral_name", "patient_count"),
    create_model=NewReferralFile,
    update_model=ReferralFileUpdate,
    record_model=ReferralFile,
)

EMERGENCY_SCHEMA = KindSchema(
    kind=RecordKind.EMERGENCY,
    label="Emergency",
    id_prefix="EMG",
    duration_years=1,
    table_name="emergency_files",
    fields=("name", "age", "gender"),
    create_model=NewEmergencyFile,
    update_model=EmergencyFileUpdate,
    record_model=EmergencyFile,
)

SCHEMAS: dict[RecordKind, KindSchema] = {
    schema.kind: schema
    for schema in (PERSONAL_SCHEMA, FAMILY_SCHEMA, REFERRAL_SCHEMA, EMERGENCY_SCHEMA)
}


def get_schema(kind: RecordKind | str) -> KindSchema:
    """Look up a kind schema by enum member or by its string value.

    Raises:
        ValueError: If ``kind`` does not name one of the four kinds
    """
    return SCHEMAS[RecordKind(kind)]
