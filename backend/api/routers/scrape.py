"""Scrape endpoint.

Routes
------
POST /scrape    Body: {"url": "example.com"}    → acquire
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.scraper.errors import AcquisitionError
from backend.scraper.orchestrator import acquire

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScrapeRequest(BaseModel):
    # Raw user input: may lack a scheme, so no HttpUrl validation here.
    url: Optional[str] = None


class PageData(BaseModel):
    url: str
    title: str
    description: str
    content: str


class ScrapeResponse(BaseModel):
    success: bool
    data: PageData
    extractionMethod: str


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("", response_model=ScrapeResponse)
async def scrape_endpoint(body: ScrapeRequest) -> Any:
    """Acquire ``body.url`` and return its title, description and content.

    Acquisition failures propagate to the app-level handler (HTTP 400).
    Anything else is logged and reported as a generic 500.
    """
    try:
        result = await acquire(body.url)
    except AcquisitionError:
        raise
    except Exception:  # noqa: BLE001
        logger.exception("Unhandled error while scraping %r", body.url)
        return JSONResponse(
            status_code=500,
            content={"error": "An unexpected error occurred while processing the request."},
        )

    return {
        "success": True,
        "data": result.to_dict(),
        "extractionMethod": result.extraction_method,
    }
