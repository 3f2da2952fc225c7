import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from core.exceptions import BizError
from modules.traffic import (
    PipelineConfig,
    TrafficAnalysisResponse,
    TrafficErrorResponse,
    analyze_traffic,
    parse_analysis_request,
)
from modules.traffic.fetcher import SleepFunc

from .utils.deps import get_overpass_transport, get_pipeline_config, get_retry_sleep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Traffic Analysis"])


@router.post(
    "/traffic-analysis",
    response_model=TrafficAnalysisResponse,
    responses={400: {"model": TrafficErrorResponse}, 500: {"model": TrafficErrorResponse}},
    summary="Analyze road network and traffic infrastructure",
    description="Fetches OSM roads and infrastructure within radiusMiles (max 5) of lat/lon and derives traffic metrics.",
)
async def traffic_analysis_endpoint(
    request: Request,
    config: PipelineConfig = Depends(get_pipeline_config),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_overpass_transport),
    sleep: SleepFunc = Depends(get_retry_sleep),
):
    """
    Body: {lat, lon, radiusMiles?}.
    InvalidInputError (400) and FetchExhaustedError (500) are rendered by the app's BizError handler.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    analysis_request = parse_analysis_request(payload, config)
    try:
        return await analyze_traffic(analysis_request, config, transport=transport, sleep=sleep)
    except BizError:
        raise
    except Exception as e:
        logger.error(f"Unexpected traffic analysis error: {e}", exc_info=True)
        body = TrafficErrorResponse(error=str(e) or "Failed to analyze traffic").model_dump(by_alias=True)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)
