# geoscore/api/endpoints/health.py
from fastapi import APIRouter, Depends
import logging

from geoscore.config.settings import settings
from geoscore.core.pipeline import GeoAnalysisPipeline
from geoscore.models.responses import HealthResponse
from geoscore.api.dependencies import get_pipeline

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health check endpoint"""
    return HealthResponse(
        status="healthy",
        version=settings.VERSION,
        services={"api": "healthy", "environment": settings.ENVIRONMENT}
    )

@router.get("/health/detailed", response_model=HealthResponse)
async def detailed_health_check(pipeline: GeoAnalysisPipeline = Depends(get_pipeline)):
    """Health of the pipeline components, including the text generator"""
    checks = await pipeline.health_check()
    return HealthResponse(
        status=checks.pop("overall", "unknown"),
        version=settings.VERSION,
        services=checks
    )
