"""Adapters layer for Clinic Records.

This module contains output adapters that interface with external systems.
Adapters implement Port interfaces defined in the domain layer and handle
the translation between domain records and relational rows.
"""
