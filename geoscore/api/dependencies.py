# geoscore/api/dependencies.py
import logging
from typing import Optional

from fastapi import Request

from geoscore.core.pipeline import GeoAnalysisPipeline

logger = logging.getLogger(__name__)

# Global pipeline instance
_pipeline_instance: Optional[GeoAnalysisPipeline] = None

def get_pipeline() -> GeoAnalysisPipeline:
    """Get or create pipeline instance (singleton)"""
    global _pipeline_instance

    if _pipeline_instance is None:
        _pipeline_instance = GeoAnalysisPipeline()
        logger.info("Pipeline instance created")

    return _pipeline_instance

def get_request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)

async def startup_handler():
    """Application startup handler"""
    logger.info("Starting up application...")
    get_pipeline()
    logger.info("Application startup completed")

async def shutdown_handler():
    """Application shutdown handler"""
    global _pipeline_instance

    logger.info("Shutting down application...")
    if _pipeline_instance:
        await _pipeline_instance.shutdown()
        _pipeline_instance = None
    logger.info("Application shutdown completed")
