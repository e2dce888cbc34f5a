# backend/lessonbook/main.py
"""
FastAPI entrypoint for the lesson booking engine.

Mounts the v1 routers under /api/v1 and converts any DomainException that
escapes a route into its HTTP representation.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.exceptions import DomainException
from .database import init_db
from .routes.v1 import lessons as lessons_v1
from .routes.v1 import pricing as pricing_v1
from .routes.v1 import prometheus as prometheus_v1
from .routes.v1 import teachers as teachers_v1
from .routes.v1 import trials as trials_v1

API_TITLE = "Lessonbook API"
API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{API_TITLE} starting up (environment={settings.environment})")
    if not settings.is_production and settings.get_database_url().startswith("sqlite"):
        # Production schemas are managed by migrations
        init_db()
    yield
    logger.info(f"{API_TITLE} shutting down")


app = FastAPI(
    title=API_TITLE,
    description=(
        "Lesson pricing, trial eligibility and lesson lifecycle for the tutoring marketplace"
    ),
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    http_exc = exc.to_http_exception()
    if http_exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(pricing_v1.router, prefix="/pricing")
api_v1.include_router(lessons_v1.router, prefix="/lessons")
api_v1.include_router(trials_v1.router, prefix="/trials")
api_v1.include_router(teachers_v1.router, prefix="/teachers")
api_v1.include_router(prometheus_v1.router)

app.include_router(api_v1)


@app.get("/health", tags=["monitoring"])
def health() -> dict[str, str]:
    return {"status": "ok", "environment": settings.environment}
