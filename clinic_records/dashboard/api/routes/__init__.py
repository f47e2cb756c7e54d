"""API routers for the dashboard backend."""

from clinic_records.dashboard.api.routes import health, records, stats

__all__ = ["health", "records", "stats"]
