"""Response models for the record endpoints.

Stored records do not carry their status; responses add it, computed
against the request's "now".
"""

from datetime import datetime
from functools import lru_cache

from pydantic import create_model

from clinic_records.domain.kinds import KindSchema
from clinic_records.domain.records import FileRecord, RecordStatus


@lru_cache(maxsize=None)
def record_response_model(schema: KindSchema) -> type[FileRecord]:
    """Build ``<Record>Response``: the stored record plus ``status``."""
    return create_model(
        f"{schema.record_model.__name__}Response",
        __base__=schema.record_model,
        status=(RecordStatus, ...),
    )


def to_response(schema: KindSchema, record: FileRecord, now: datetime) -> FileRecord:
    response_model = record_response_model(schema)
    return response_model(**record.model_dump(), status=record.status_at(now))
