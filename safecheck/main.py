import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from safecheck.api import analysis, profiles
from safecheck.database import engine
from safecheck.models import Base

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("SafeCheck store tables ready")
    yield


app = FastAPI(title="SafeCheck", version="0.1.0", lifespan=lifespan)

# Include routers
app.include_router(profiles.router)
app.include_router(analysis.router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
