"""FastAPI dependencies shared by the routers."""
from fastapi import Depends
from sqlalchemy.orm import Session

from safecheck.database import get_db
from safecheck.services.ai_service import ClaudeService
from safecheck.services.store import AppStore


_claude_service: ClaudeService | None = None


def get_store(db: Session = Depends(get_db)) -> AppStore:
    return AppStore(db)


def get_claude_service() -> ClaudeService:
    """Process-wide Claude client, created on first use."""
    global _claude_service
    if _claude_service is None:
        _claude_service = ClaudeService()
    return _claude_service
