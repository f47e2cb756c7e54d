"""Dashboard Pydantic models."""

from clinic_records.dashboard.models.health import DatabaseHealth, HealthResponse
from clinic_records.dashboard.models.records import record_response_model, to_response

__all__ = ["DatabaseHealth", "HealthResponse", "record_response_model", "to_response"]
