from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from safecheck.config import settings


def _connect_args(url: str) -> dict:
    # SQLite connections are shared with FastAPI's threadpool
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url, connect_args=_connect_args(settings.database_url)
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
