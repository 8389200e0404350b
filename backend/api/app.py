"""FastAPI application factory.

Routers
-------
Endpoint groups are mounted under their respective path prefix:

    /scrape            — acquire a URL and return its extracted content
    /marketing-report  — turn extracted content into a marketing report

Acquisition failures are rendered by a single exception handler so every
route reports them with the same ``{"error", "type", "suggestion"}`` shape.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.api.routers import report as report_router
from backend.api.routers import scrape as scrape_router
from backend.config import settings
from backend.log import configure_logging
from backend.scraper.errors import AcquisitionError

logger = logging.getLogger(__name__)


async def _acquisition_error_handler(request: Request, exc: AcquisitionError) -> JSONResponse:
    logger.info("Acquisition failed (%s): %s", exc.kind, exc.message)
    return JSONResponse(status_code=400, content=exc.to_dict())


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    configure_logging()
    if settings.worst_case_duration >= settings.acquire_timeout:
        logger.warning(
            "ACQUIRE_TIMEOUT (%.0fs) is shorter than the worst-case strategy ladder (%.0fs); "
            "later browser engines may be cut off",
            settings.acquire_timeout,
            settings.worst_case_duration,
        )
    app = FastAPI(
        title="Page Acquisition API",
        description=(
            "Fetches arbitrary, possibly bot-protected web pages with escalating "
            "strategies (direct HTTP, retries with rotated identities, headless "
            "browsers), extracts their readable content, and generates "
            "marketing reports from it."
        ),
        version="0.3.0",
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AcquisitionError, _acquisition_error_handler)  # type: ignore[arg-type]

    app.include_router(scrape_router.router, prefix="/scrape", tags=["scrape"])
    app.include_router(report_router.router, prefix="/marketing-report", tags=["report"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn backend.api.app:app --reload
app = create_app()
