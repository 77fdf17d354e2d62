from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func

from safecheck.database import Base


class StoreEntry(Base):
    """One serialized collection (profiles, history, ...) keyed by name."""
    __tablename__ = "store_entries"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
