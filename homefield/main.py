"""
FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from homefield.api.routes import api_router
from homefield.core.config import get_settings
from homefield.core.errors import PortalError, portal_error_handler
from homefield.core.session_middleware import SessionMiddleware
from homefield.core.validation import validate_settings_on_startup

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan - startup and shutdown events.

    Startup:
    - Validates Supabase and integration settings (fatal in production)
    """
    logger.info("Starting HomeField portal API...")

    try:
        validate_settings_on_startup(settings)
    except RuntimeError as e:
        if settings.is_production:
            logger.error(f"Startup failed: {e}")
            raise
        logger.warning(f"Configuration warnings (non-fatal in {settings.environment}): {e}")

    logger.info(f"HomeField portal API started ({settings.environment})")

    yield  # Application is running

    logger.info("HomeField portal API shutdown complete")


app = FastAPI(
    title="HomeField Portal",
    description="Multi-tenant agency portal: client intake, dashboards, admin and power dialer",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Session token from Authorization header or Supabase auth cookie
app.add_middleware(SessionMiddleware)

app.add_exception_handler(PortalError, portal_error_handler)

app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"message": "HomeField Portal API", "status": "running"}
