"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the sales history model written by ``sales_ingest``.
"""

from .sales import AppleSalesHistory, Base

__all__ = [
    "Base",
    "AppleSalesHistory",
]
