"""Dependency injection for the records API.

The storage adapter is created once by the application lifespan and kept
on ``app.state``; these dependencies hand it (and the objects built on top
of it) to the routes. Tests replace them via ``app.dependency_overrides``.
"""

import logging
from datetime import datetime
from typing import Annotated, Callable

from fastapi import Depends, HTTPException, Request, status

from clinic_records.domain.ports import StoragePort
from clinic_records.domain.statistics import StatisticsAggregator
from clinic_records.domain.utils import utc_now
from clinic_records.infrastructure.settings import Settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def get_storage_adapter(request: Request) -> StoragePort:
    """Get the storage adapter owned by the running application.

    Raises:
        HTTPException: 503 if the application has no open storage adapter
    """
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        logger.error("Storage adapter requested before application startup")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Record storage is not available"
        )
    return storage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_clock() -> Clock:
    """Source of "now" for status and statistics; overridden in tests."""
    return utc_now


StorageDep = Annotated[StoragePort, Depends(get_storage_adapter)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
ClockDep = Annotated[Clock, Depends(get_clock)]


def get_statistics_aggregator(storage: StorageDep, clock: ClockDep) -> StatisticsAggregator:
    return StatisticsAggregator(storage, clock=clock)


AggregatorDep = Annotated[StatisticsAggregator, Depends(get_statistics_aggregator)]
