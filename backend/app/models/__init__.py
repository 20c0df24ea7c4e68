"""
SQLModel models for Travel Log.

This module exports all database models so they are registered on
SQLModel metadata before tables are created.
"""

from .adventure import AdventureRecord
from .settings import ClusterSettings
from .sync_status import SyncStatus

__all__ = [
    "AdventureRecord",
    "ClusterSettings",
    "SyncStatus",
]
