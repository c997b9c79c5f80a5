# geoscore/models/__init__.py
"""Data models"""

from .requests import AnalyzeRequest, AnalyzeTextRequest, CompareRequest, ValidateRewriteRequest
from .responses import (
    GeoAnalysisResponse,
    CompareResponse,
    ValidateRewriteResponse,
    HealthResponse,
    ErrorResponse
)
from .internal import (
    AnalyzeOptions,
    ContentDocument,
    GeoScores,
    ExtractionOutcome,
    SemanticRecord,
    UnifiedAnalysis,
    ComparisonResult,
    DeltaResult
)

__all__ = [
    "AnalyzeRequest",
    "AnalyzeTextRequest",
    "CompareRequest",
    "ValidateRewriteRequest",
    "GeoAnalysisResponse",
    "CompareResponse",
    "ValidateRewriteResponse",
    "HealthResponse",
    "ErrorResponse",
    "AnalyzeOptions",
    "ContentDocument",
    "GeoScores",
    "ExtractionOutcome",
    "SemanticRecord",
    "UnifiedAnalysis",
    "ComparisonResult",
    "DeltaResult"
]
