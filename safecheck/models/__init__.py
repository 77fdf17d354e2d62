"""
Database models for SafeCheck.

Import all models here so Base.metadata sees them before create_all.
"""

from safecheck.database import Base
from safecheck.models.store_entry import StoreEntry

__all__ = [
    "Base",
    "StoreEntry",
]
