"""Clinic Records: registration dashboard backend for clinic file records.

Staff register, list, edit and delete personal, family, referral and
emergency files. Each file expires a fixed number of years after
registration, and the dashboard reports per-category statistics.
"""

__version__ = "1.0.0"
