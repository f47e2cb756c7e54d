"""Record Schema Definitions.

This module defines the pydantic models for the four clinic file kinds:
the creation payloads (kind-specific fields only), the partial-update
payloads (every field optional), and the stored records (fields plus id,
registration date and expiry date).

Architecture:
    - Pure domain models with no infrastructure dependencies
    - JSON uses camelCase names (``registrationDate``, ``headName``);
      Python attributes and SQL columns use snake_case
    - Status (Active/Expired) is derived from ``expiry_date`` on read
      and never stored
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from clinic_records.domain.utils import coerce_count, to_naive_utc

# storage column limits: INTEGER counts, VARCHAR(255) names
MAX_COUNT = 2_147_483_647
MAX_NAME_LENGTH = 255


class Gender(str, Enum):
    """Gender values accepted on personal and emergency files."""
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class RecordStatus(str, Enum):
    """Derived file status."""
    ACTIVE = "Active"
    EXPIRED = "Expired"


class RecordModel(BaseModel):
    """Base model: camelCase aliases on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# ============================================================================
# Creation payloads
# ============================================================================

class PersonFields(RecordModel):
    """Fields shared by personal and emergency files.

    Attributes:
        name: Patient full name
        age: Age in years; unparsable input becomes 0
        gender: Male, Female or Other
    """
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH, description="Patient full name")
    age: int = Field(..., ge=0, le=MAX_COUNT, description="Age in years")
    gender: Gender = Field(..., description="Patient gender")

    @field_validator("age", mode="before")
    @classmethod
    def parse_age(cls, v):
        return coerce_count(v)


class NewPersonalFile(PersonFields):
    """Payload for registering a personal file."""


class NewEmergencyFile(PersonFields):
    """Payload for registering an emergency file."""


class NewFamilyFile(RecordModel):
    """Payload for registering a family file.

    Attributes:
        head_name: Name of the head of the family
        member_count: Number of family members (at least 1)
    """
    head_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH, description="Head of family")
    member_count: int = Field(..., ge=1, le=MAX_COUNT, description="Number of family members")

    @field_validator("member_count", mode="before")
    @classmethod
    def parse_member_count(cls, v):
        return coerce_count(v)


class NewReferralFile(RecordModel):
    """Payload for registering a referral file.

    Attributes:
        referral_name: Referring doctor or institution
        patient_count: Number of patients referred so far
    """
    referral_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH, description="Referring party")
    patient_count: int = Field(..., ge=0, le=MAX_COUNT, description="Patients referred")

    @field_validator("patient_count", mode="before")
    @classmethod
    def parse_patient_count(cls, v):
        return coerce_count(v)


# ============================================================================
# Partial-update payloads
# ============================================================================

class DateUpdateFields(RecordModel):
    """Date fields that any kind may edit after creation."""
    registration_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None

    @field_validator("registration_date", "expiry_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else v


class PersonUpdate(DateUpdateFields):
    name: Optional[str] = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    age: Optional[int] = Field(None, ge=0, le=MAX_COUNT)
    gender: Optional[Gender] = None

    @field_validator("age", mode="before")
    @classmethod
    def parse_age(cls, v):
        return coerce_count(v)


class PersonalFileUpdate(PersonUpdate):
    """Partial update for a personal file."""


class EmergencyFileUpdate(PersonUpdate):
    """Partial update for an emergency file."""


class FamilyFileUpdate(DateUpdateFields):
    """Partial update for a family file."""
    head_name: Optional[str] = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    member_count: Optional[int] = Field(None, ge=1, le=MAX_COUNT)

    @field_validator("member_count", mode="before")
    @classmethod
    def parse_member_count(cls, v):
        return coerce_count(v)


class ReferralFileUpdate(DateUpdateFields):
    """Partial update for a referral file."""
    referral_name: Optional[str] = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    patient_count: Optional[int] = Field(None, ge=0, le=MAX_COUNT)

    @field_validator("patient_count", mode="before")
    @classmethod
    def parse_patient_count(cls, v):
        return coerce_count(v)


# ============================================================================
# Stored records
# ============================================================================

class FileRecord(RecordModel):
    """Common part of every stored file.

    Attributes:
        id: Kind prefix plus random suffix, immutable
        registration_date: When the file was registered (naive UTC)
        expiry_date: When the file stops being active (naive UTC)
    """
    id: str = Field(..., description="Record identifier")
    registration_date: datetime = Field(..., description="Registration timestamp")
    expiry_date: datetime = Field(..., description="Expiry timestamp")

    @field_validator("registration_date", "expiry_date")
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    def is_active(self, now: datetime) -> bool:
        """A file is active while its expiry date has not passed."""
        return self.expiry_date >= now

    def status_at(self, now: datetime) -> RecordStatus:
        return RecordStatus.ACTIVE if self.is_active(now) else RecordStatus.EXPIRED


class PersonalFile(NewPersonalFile, FileRecord):
    """Stored personal file."""


class EmergencyFile(NewEmergencyFile, FileRecord):
    """Stored emergency file."""


class FamilyFile(NewFamilyFile, FileRecord):
    """Stored family file."""


class ReferralFile(NewReferralFile, FileRecord):
    """Stored referral file."""


class DeleteResult(BaseModel):
    """Outcome of a delete: whether a record with the id existed."""
    success: bool
