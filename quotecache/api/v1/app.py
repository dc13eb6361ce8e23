"""FastAPI application — quotecache v1."""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from quotecache import __version__
from quotecache.api.v1 import quotes, system
from quotecache.api.v1.errors import ApiError, api_error_handler, value_error_handler
from quotecache.core.config import settings
from quotecache.core.data import get_engine
from quotecache.core.data.store.db import create_all
from quotecache.core.logging import configure_logging
from quotecache.core.regions import supported_regions

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level, json=settings.log_json)
    engine = get_engine()
    try:
        await create_all(engine)
    except (SQLAlchemyError, OSError) as e:
        # The cache degrades to pass-through; requests still reach the upstream
        logger.error("startup.schema_failed", error=str(e))
    logger.info("startup", version=__version__, regions=supported_regions())
    yield
    await engine.dispose()
    logger.info("shutdown")


app = FastAPI(
    title="quotecache",
    version=__version__,
    description="Read-through caching proxy for yfapi.net quotes and trending lists",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quotes.router, prefix="/api/yh")
app.include_router(system.router, prefix="/api/yh")

app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(ValueError, value_error_handler)


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}
