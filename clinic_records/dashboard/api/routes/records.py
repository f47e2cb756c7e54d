"""Record CRUD endpoints.

One router is built per kind schema, so ``/api/personal``,
``/api/family``, ``/api/referral`` and ``/api/emergency`` share a single
implementation. Every route requires a bearer token.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from clinic_records.dashboard.api.dependencies import ClockDep, StorageDep
from clinic_records.dashboard.api.security import require_bearer_token
from clinic_records.dashboard.models.records import record_response_model, to_response
from clinic_records.domain.kinds import SCHEMAS, KindSchema
from clinic_records.domain.ports import RecordValidationError
from clinic_records.domain.record_store import RecordStore
from clinic_records.domain.records import DeleteResult, RecordStatus

logger = logging.getLogger(__name__)


def build_router(schema: KindSchema) -> APIRouter:
    """Create the CRUD router for one record kind.

    Parameters:
        schema: Kind schema supplying the payload and response models

    Returns:
        APIRouter mounted at ``/api/<kind>``
    """
    router = APIRouter(
        prefix=f"/api/{schema.kind.value}",
        tags=[schema.kind.value],
        dependencies=[Depends(require_bearer_token)],
    )

    ResponseModel = record_response_model(schema)
    CreateModel = schema.create_model
    UpdateModel = schema.update_model

    def get_store(storage: StorageDep, clock: ClockDep) -> RecordStore:
        return RecordStore(storage, schema, clock=clock)

    StoreDep = Annotated[RecordStore, Depends(get_store)]

    @router.get("", response_model=list[ResponseModel])
    async def list_records(
        store: StoreDep,
        clock: ClockDep,
        record_status: Optional[RecordStatus] = Query(None, alias="status", description="Active or Expired"),
    ):
        """List records, newest registration first."""
        now = clock()
        records = [to_response(schema, record, now) for record in store.find()]
        if record_status is not None:
            records = [record for record in records if record.status == record_status]
        return records

    @router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
    async def create_record(payload: CreateModel, store: StoreDep, clock: ClockDep):
        """Register a new record; id and dates are assigned by the server."""
        try:
            record = store.create(payload)
        except RecordValidationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return to_response(schema, record, clock())

    @router.api_route("/{record_id}", methods=["PUT", "PATCH"], response_model=ResponseModel)
    async def update_record(record_id: str, changes: UpdateModel, store: StoreDep, clock: ClockDep):
        """Apply a partial update; omitted fields keep their values."""
        try:
            record = store.update(record_id, changes)
        except RecordValidationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{schema.label} record {record_id} not found"
            )
        return to_response(schema, record, clock())

    @router.delete("/{record_id}", response_model=DeleteResult)
    async def delete_record(record_id: str, store: StoreDep) -> DeleteResult:
        """Delete a record; ``success`` is false when the id does not exist."""
        return store.delete(record_id)

    return router


routers = [build_router(schema) for schema in SCHEMAS.values()]
