"""Marketing report endpoint.

Routes
------
POST /marketing-report    Body: {"data": {url, title, description, content}}
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.report.marketing import (
    ReportInputError,
    ReportParseError,
    generate_marketing_report,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class ReportData(BaseModel):
    url: str = ""
    title: str = ""
    description: str = ""
    content: str = ""


class ReportRequest(BaseModel):
    data: Optional[ReportData] = None


@router.post("")
async def marketing_report_endpoint(body: ReportRequest) -> Any:
    """Generate a marketing report from previously scraped page data."""
    data = body.data.model_dump() if body.data else {}
    try:
        report = await run_in_threadpool(generate_marketing_report, data)
    except ReportInputError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except ReportParseError as exc:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to generate structured marketing report",
                "details": str(exc),
            },
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Marketing report generation failed")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate marketing report", "details": str(exc)},
        )

    return {
        "success": True,
        "report": report,
        "sourceData": {"url": data["url"], "title": data["title"]},
    }
