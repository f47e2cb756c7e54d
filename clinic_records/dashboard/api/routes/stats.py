"""Statistics endpoint for the records dashboard."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from clinic_records.dashboard.api.dependencies import AggregatorDep
from clinic_records.dashboard.api.security import require_bearer_token
from clinic_records.domain.statistics import StatsSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["stats"], dependencies=[Depends(require_bearer_token)])


@router.get("/stats", response_model=StatsSummary)
async def get_stats(aggregator: AggregatorDep) -> StatsSummary:
    """Per-kind totals: all files, registered this week, expired and active.

    All four kinds are evaluated against the same instant.
    """
    result = aggregator.compute_stats()
    if result.is_failure():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Record storage is temporarily unavailable"
        )
    return result.value
