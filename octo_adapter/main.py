from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from octo_adapter import __version__
from octo_adapter.api.v1.health import router as health_router
from octo_adapter.api.v1.schemas import ErrorResponse
from octo_adapter.api.v1.supplier import router as supplier_router
from octo_adapter.config import get_settings
from octo_adapter.core.errors import OctoAdapterError

settings = get_settings()

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.jwt_key:
        logger.warning("OCTO_JWT_KEY is not set: availability search and booking will be refused")
    logger.info("Application startup completed")
    yield
    logger.info("Application shutdown completed")


app = FastAPI(
    title="OCTO Adapter",
    description="Reseller-platform operations over OCTO supplier APIs",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)


@app.exception_handler(OctoAdapterError)
async def adapter_exception_handler(request: Request, exc: OctoAdapterError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, error_code=exc.error_code, details=exc.details).model_dump(),
    )


app.include_router(health_router)
app.include_router(supplier_router)
