# geoscore/core/__init__.py

from .exceptions import (
    CustomHTTPException,
    PipelineException,
    ContentReadException,
    LLMAnalysisException,
    ExtractionCallException,
    ExtractionParseException,
    ValidationException,
    ContentTooLargeException,
    ComparisonInputException,
    InsufficientAnalysesException
)

# DO NOT import GeoAnalysisPipeline here, services import core.exceptions

__all__ = [
    "CustomHTTPException",
    "PipelineException",
    "ContentReadException",
    "LLMAnalysisException",
    "ExtractionCallException",
    "ExtractionParseException",
    "ValidationException",
    "ContentTooLargeException",
    "ComparisonInputException",
    "InsufficientAnalysesException"
]
