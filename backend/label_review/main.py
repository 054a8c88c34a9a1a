"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router
from .services import (
    ApplicationStore,
    InMemoryResultCache,
    LabelExtractor,
    LabelReviewService,
)
from .config import Settings, get_settings
from . import __version__

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown."""
    logger.info("Starting Label Review API...")

    service: LabelReviewService = app.state.review_service
    logger.info(f"Application records: {service.store.data_path}")
    if service.extractor.is_configured:
        logger.info("Label extraction configured")
    else:
        logger.warning("OPENAI_API_KEY not set - verification requests will fail with 502")

    logger.info(f"API ready - Version {__version__}")

    yield

    logger.info("Shutting down Label Review API...")


def build_review_service(settings: Settings) -> LabelReviewService:
    """Wire the store, cache and extractor for one application instance."""
    return LabelReviewService(
        store=ApplicationStore(settings.data_path),
        cache=InMemoryResultCache(),
        extractor=LabelExtractor(settings),
        labels_dir=settings.labels_dir,
        allowed_formats=settings.allowed_image_formats,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="""
## Label Review API

Compares alcohol beverage label images against filed application data and
records reviewer decisions.

### Features
- **Applications**: List filed applications and their review status
- **Verification**: Extract label fields with a vision model and compare them field by field
- **Decisions**: Record a pass/fail decision with a summary of discrepancies
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Each app instance owns its own store lock and result cache
    app.state.review_service = build_review_service(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "Label Review API",
            "version": __version__,
            "docs": "/docs"
        }

    return app


# Create app instance
app = create_app()
