"""Record Store - generic CRUD over one record kind.

One ``RecordStore`` class serves all four kinds; the ``KindSchema`` it is
constructed with supplies the field set, id prefix and expiry duration.
The store owns no connection: it is handed an explicitly constructed
``StoragePort`` whose lifecycle belongs to the caller.

Not-found is never an exception here. ``update`` returns ``None`` and
``delete`` returns ``DeleteResult(success=False)`` for unknown ids;
``StorageUnavailableError`` is reserved for persistence failures.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import BaseModel

from clinic_records.domain.kinds import SCHEMAS, KindSchema, RecordKind
from clinic_records.domain.ports import (
    RecordValidationError,
    Result,
    StorageConstraintError,
    StoragePort,
    StorageUnavailableError,
)
from clinic_records.domain.records import DeleteResult, FileRecord
from clinic_records.domain.utils import utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Payload = Union[BaseModel, Mapping[str, Any]]


def apply_partial_update(record: FileRecord, changes: BaseModel) -> FileRecord:
    """Apply the fields present in ``changes`` to ``record``.

    Only fields the caller explicitly set (and did not set to null) are
    applied; everything else, including ``id``, is preserved. The merged
    record is re-validated and must keep ``expiry_date`` after
    ``registration_date``.

    Parameters:
        record: Current stored record
        changes: Partial-update model for the record's kind

    Returns:
        FileRecord: New record instance with the changes applied

    Raises:
        RecordValidationError: If the dates end up out of order
    """
    updates = changes.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        return record

    merged = type(record).model_validate({**record.model_dump(), **updates})
    if merged.expiry_date <= merged.registration_date:
        raise RecordValidationError(
            "expiryDate must be later than registrationDate",
            record_id=record.id,
            details={
                "registrationDate": merged.registration_date.isoformat(),
                "expiryDate": merged.expiry_date.isoformat(),
            }
        )
    return merged


class RecordStore:
    """CRUD operations for one record kind.

    Parameters:
        storage: Storage adapter (already opened by the caller)
        schema: Kind schema this store serves
        clock: Source of "now"; injectable for tests
    """

    def __init__(self, storage: StoragePort, schema: KindSchema, clock: Clock = utc_now):
        self.storage = storage
        self.schema = schema
        self.clock = clock

    @property
    def kind(self) -> RecordKind:
        return self.schema.kind

    def _unwrap(self, result: Result, operation: str):
        if result.is_failure() and result.error_type == StorageConstraintError.__name__:
            logger.warning(f"{operation} rejected by {self.schema.table_name}: {result.error}")
            raise RecordValidationError(
                f"Record rejected by storage during {operation}",
                details=result.error_details
            )
        if result.is_failure():
            logger.error(
                f"{operation} failed for {self.schema.table_name}: "
                f"{result.error_type}: {result.error}"
            )
            raise StorageUnavailableError(
                f"Record storage unavailable during {operation}",
                operation=operation,
                result=result
            )
        return result.value

    def _coerce(self, payload: Payload, model: type[BaseModel]) -> BaseModel:
        if isinstance(payload, model):
            return payload
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(exclude_unset=True)
        return model.model_validate(payload)

    def find(self) -> list[FileRecord]:
        """Return every record of this kind, newest registration first."""
        rows = self._unwrap(self.storage.fetch_all(self.schema), "find")
        return [self.schema.from_row(row) for row in rows]

    def get(self, record_id: str) -> Optional[FileRecord]:
        """Point lookup; ``None`` when the id does not exist."""
        row = self._unwrap(self.storage.fetch_one(self.schema, record_id), "get")
        return self.schema.from_row(row) if row is not None else None

    def create(self, data: Payload) -> FileRecord:
        """Register a new record.

        The payload holds only the kind-specific fields. The store assigns
        the id, sets ``registration_date`` to now and derives
        ``expiry_date`` from the kind's duration.

        Parameters:
            data: Creation model instance or a mapping accepted by it

        Returns:
            FileRecord: The fully populated, persisted record

        Raises:
            pydantic.ValidationError: If the payload is malformed
            RecordValidationError: If the database rejects the row
            StorageUnavailableError: If the insert fails
        """
        fields = self._coerce(data, self.schema.create_model)
        registered_at = self.clock()
        record = self.schema.record_model.model_validate({
            **fields.model_dump(),
            "id": self.schema.new_id(),
            "registration_date": registered_at,
            "expiry_date": self.schema.expiry_for(registered_at),
        })

        self._unwrap(self.storage.insert(self.schema, self.schema.to_row(record)), "create")
        logger.info(f"Created {self.kind.value} record {record.id}")
        return record

    def update(self, record_id: str, changes: Payload) -> Optional[FileRecord]:
        """Apply a partial update.

        Parameters:
            record_id: Record to change
            changes: Partial-update model or mapping; omitted fields stay

        Returns:
            Optional[FileRecord]: Updated record, or ``None`` if absent

        Raises:
            RecordValidationError: If the change puts expiry before registration
                or the database rejects the row
            StorageUnavailableError: If persistence fails
        """
        partial = self._coerce(changes, self.schema.update_model)
        current = self.get(record_id)
        if current is None:
            logger.info(f"Update skipped, {self.kind.value} record {record_id} not found")
            return None

        updated = apply_partial_update(current, partial)
        if updated is current:
            return current

        matched = self._unwrap(
            self.storage.replace(self.schema, record_id, self.schema.to_row(updated)),
            "update"
        )
        if not matched:
            # deleted between read and write
            return None

        logger.info(f"Updated {self.kind.value} record {record_id}")
        return updated

    def delete(self, record_id: str) -> DeleteResult:
        """Delete by id; ``success`` tells whether the record existed."""
        removed = self._unwrap(self.storage.delete(self.schema, record_id), "delete")
        if removed:
            logger.info(f"Deleted {self.kind.value} record {record_id}")
        return DeleteResult(success=bool(removed))


def build_record_stores(storage: StoragePort, clock: Clock = utc_now) -> dict[RecordKind, RecordStore]:
    """Instantiate one store per kind over a shared storage adapter."""
    return {kind: RecordStore(storage, schema, clock=clock) for kind, schema in SCHEMAS.items()}
