# geoscore/api/endpoints/compare.py
from fastapi import APIRouter, Depends, HTTPException
import logging

from geoscore.core.pipeline import GeoAnalysisPipeline
from geoscore.core.exceptions import ContentReadException, CustomHTTPException, PipelineException
from geoscore.models.requests import CompareRequest, ValidateRewriteRequest
from geoscore.models.responses import CompareResponse, ValidateRewriteResponse, ErrorResponse
from geoscore.api.dependencies import get_pipeline
from geoscore.api.endpoints.analyze import read_failure

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post(
    "/compare",
    response_model=CompareResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    },
    summary="Compare GEO scores across 2-5 URLs"
)
async def compare_urls(
    request: CompareRequest,
    pipeline: GeoAnalysisPipeline = Depends(get_pipeline)
):
    try:
        return await pipeline.compare_urls(
            request.urls,
            request.query,
            ai_model=request.ai_model,
            output_format=request.output_format
        )

    except CustomHTTPException:
        raise

    except PipelineException as e:
        logger.error(f"Pipeline error: {str(e)}")
        raise CustomHTTPException(status_code=500, detail=str(e), error_code="PIPELINE_ERROR")

    except Exception as e:
        logger.error(f"Unexpected error comparing {len(request.urls)} URLs: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

@router.post(
    "/validate-rewrite",
    response_model=ValidateRewriteResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    },
    summary="Score a rewrite against the original page"
)
async def validate_rewrite(
    request: ValidateRewriteRequest,
    pipeline: GeoAnalysisPipeline = Depends(get_pipeline)
):
    try:
        return await pipeline.validate_rewrite(
            request.original_url,
            request.optimized_content,
            request.target_query,
            title=request.title,
            ai_model=request.ai_model,
            output_format=request.output_format
        )

    except CustomHTTPException:
        raise

    except ContentReadException as e:
        logger.warning(f"Read failure for '{request.original_url}': {e}")
        raise read_failure(e)

    except PipelineException as e:
        logger.error(f"Pipeline error: {str(e)}")
        raise CustomHTTPException(status_code=500, detail=str(e), error_code="PIPELINE_ERROR")

    except Exception as e:
        logger.error(f"Unexpected error validating rewrite: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
