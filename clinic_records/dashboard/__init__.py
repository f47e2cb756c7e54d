"""Dashboard module for Clinic Records.

This module provides the FastAPI backend consumed by the records dashboard:
per-category CRUD endpoints, aggregate statistics and a health check.
"""
