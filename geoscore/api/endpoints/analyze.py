# geoscore/api/endpoints/analyze.py
from fastapi import APIRouter, Depends, HTTPException
import logging

from geoscore.core.pipeline import GeoAnalysisPipeline
from geoscore.core.exceptions import ContentReadException, CustomHTTPException, PipelineException
from geoscore.models.internal import AnalyzeOptions
from geoscore.models.requests import AnalyzeRequest, AnalyzeTextRequest
from geoscore.models.responses import GeoAnalysisResponse, ErrorResponse
from geoscore.api.dependencies import get_pipeline

router = APIRouter()
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse}
}

def read_failure(e: ContentReadException) -> CustomHTTPException:
    upstream = f" (upstream status {e.status_code})" if e.status_code else ""
    return CustomHTTPException(status_code=502, detail=f"{e}{upstream}", error_code="READ_FAILURE")

@router.post(
    "/analyze",
    response_model=GeoAnalysisResponse,
    responses=ERROR_RESPONSES,
    summary="Analyze a URL for GEO",
    description="Read a page through the content reader and score its extractability, readability and citability."
)
async def analyze_url(
    request: AnalyzeRequest,
    pipeline: GeoAnalysisPipeline = Depends(get_pipeline)
):
    """
    - **url**: Page to analyze
    - **query**: Target query the page should answer
    - **competitor_urls** / **auto_discover_competitors**: Optional competitor summaries
    """
    options = AnalyzeOptions(
        ai_model=request.ai_model,
        competitor_urls=request.competitor_urls,
        auto_discover_competitors=request.auto_discover_competitors,
        semantic_analysis=request.semantic_analysis,
        jina_api_key=request.jina_api_key
    )

    try:
        return await pipeline.analyze_url(request.url, request.query, options)

    except CustomHTTPException:
        raise

    except ContentReadException as e:
        logger.warning(f"Read failure for '{request.url}': {e}")
        raise read_failure(e)

    except PipelineException as e:
        logger.error(f"Pipeline error: {str(e)}")
        raise CustomHTTPException(status_code=500, detail=str(e), error_code="PIPELINE_ERROR")

    except Exception as e:
        logger.error(f"Unexpected error analyzing '{request.url}': {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

@router.post(
    "/analyze-text",
    response_model=GeoAnalysisResponse,
    responses=ERROR_RESPONSES,
    summary="Analyze raw text for GEO"
)
async def analyze_text(
    request: AnalyzeTextRequest,
    pipeline: GeoAnalysisPipeline = Depends(get_pipeline)
):
    options = AnalyzeOptions(ai_model=request.ai_model, semantic_analysis=request.semantic_analysis)

    try:
        return await pipeline.analyze_raw_text(
            request.content,
            request.query,
            options,
            title=request.title,
            url=request.url
        )

    except CustomHTTPException:
        raise

    except PipelineException as e:
        logger.error(f"Pipeline error: {str(e)}")
        raise CustomHTTPException(status_code=500, detail=str(e), error_code="PIPELINE_ERROR")

    except Exception as e:
        logger.error(f"Unexpected error analyzing text: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
