"""AdLens — Performance Report & Column Metadata Routes."""

import asyncio

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from adlens.analyzer.report_service import PerformanceService
from adlens.core.column_registry import column_metadata
from adlens.core.logging import get_logger
from adlens.deps import get_performance_service
from adlens.models.report_models import PerformanceRequest, PerformanceResponse

logger = get_logger("api.performance")

router = APIRouter(prefix="/api", tags=["Performance"])


@router.get("/columns")
async def get_columns(response: Response):
    """Metadata for every report column.

    The dashboard uses it to decide which columns to offer for the current
    grouping level and campaign objective.
    """
    response.headers["Cache-Control"] = "public, max-age=3600"
    return {"columns": column_metadata()}


@router.post("/performance", response_model=PerformanceResponse)
async def get_performance(
    request: PerformanceRequest,
    service: PerformanceService = Depends(get_performance_service),
):
    """Aggregated, KPI-enriched report for one page of campaigns or ads."""
    try:
        return await asyncio.to_thread(service.get_performance, request)
    except Exception as e:
        logger.error(f"Performance report failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch performance data", "message": str(e)},
        )
