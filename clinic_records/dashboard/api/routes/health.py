"""Health check endpoint for the records API."""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter

from clinic_records import __version__
from clinic_records.dashboard.api.dependencies import StorageDep
from clinic_records.dashboard.models.health import DatabaseHealth, HealthResponse
from clinic_records.domain.ports import StoragePort

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


def check_database_health(storage: StoragePort) -> DatabaseHealth:
    """Probe the database with ``SELECT 1``.

    Parameters:
        storage: Storage adapter instance

    Returns:
        DatabaseHealth: Connection status and probe latency

    Security Impact:
        - Only checks connectivity, no record data exposed
    """
    db_config = getattr(storage, "db_config", None)
    db_type = db_config.db_type if db_config is not None else "unknown"

    start_time = time.time()
    result = storage.query("SELECT 1")
    if result.is_failure():
        logger.warning(f"Database health probe failed: {result.error}")
        return DatabaseHealth(status="disconnected", type=db_type, response_time_ms=None)

    response_time = (time.time() - start_time) * 1000
    return DatabaseHealth(status="connected", type=db_type, response_time_ms=round(response_time, 2))


@router.get("/health", response_model=HealthResponse)
async def health_check(storage: StorageDep) -> HealthResponse:
    """Health check endpoint, public for monitoring tools and load balancers."""
    db_health = check_database_health(storage)
    return HealthResponse(
        status="healthy" if db_health.status == "connected" else "unhealthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        database=db_health
    )
