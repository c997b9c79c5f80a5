# geoscore/core/exceptions.py
from typing import Any, Dict, List, Optional

from fastapi import HTTPException

class CustomHTTPException(HTTPException):
    def __init__(self, status_code: int, detail: str, error_code: str = None):
        super().__init__(status_code=status_code, detail=detail)
        self.error_code = error_code

class PipelineException(Exception):
    """Exception raised during pipeline processing"""
    pass

class ContentReadException(Exception):
    """Exception raised when the content reader cannot return a document"""

    def __init__(self, message: str, status_code: Optional[int] = None, target: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.target = target

class LLMAnalysisException(Exception):
    """Exception raised during LLM analysis"""
    pass

class ExtractionCallException(LLMAnalysisException):
    """The generative-text capability failed or returned no text"""
    pass

class ExtractionParseException(LLMAnalysisException):
    """The model reply could not be turned into a semantic record"""
    pass

class ValidationException(CustomHTTPException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=400, detail=detail, error_code="VALIDATION_ERROR")

class ContentTooLargeException(CustomHTTPException):
    def __init__(self, size: int, limit: int):
        super().__init__(
            status_code=413,
            detail=f"Content exceeds maximum size of {limit} characters ({round(size / 1024)}KB provided)",
            error_code="CONTENT_TOO_LARGE"
        )

class ComparisonInputException(CustomHTTPException):
    def __init__(self, detail: str = "Invalid number of documents for comparison"):
        super().__init__(status_code=400, detail=detail, error_code="COMPARISON_INPUT_ERROR")

class InsufficientAnalysesException(CustomHTTPException):
    def __init__(self, errors: List[Dict[str, Any]], required: int = 2):
        causes = "; ".join(f"{e.get('url')}: {e.get('error')}" for e in errors) or "none"
        super().__init__(
            status_code=422,
            detail=f"Not enough successful analyses (minimum {required} required). Errors: {causes}",
            error_code="INSUFFICIENT_ANALYSES"
        )
        self.errors = errors
