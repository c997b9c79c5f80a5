# geoscore/models/responses.py
from pydantic import BaseModel, Field
from typing import List, Optional, Dict
from datetime import datetime, timezone

from .internal import (
    CompetitorSummary,
    ComparisonResult,
    ContentDocument,
    DeltaResult,
    GeoScores,
    Recommendation,
    UnifiedAnalysis,
)

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class RequestInfo(BaseModel):
    url: str
    query: str
    competitor_urls: Optional[List[str]] = None
    analyzed_at: datetime = Field(default_factory=_utcnow)

class DocumentError(BaseModel):
    url: str
    error: str

class CompetitorBlock(BaseModel):
    query: str
    retrieved_at: datetime = Field(default_factory=_utcnow)
    results: List[ContentDocument] = []
    analyses: List[CompetitorSummary] = []
    errors: List[DocumentError] = []

class UsageInfo(BaseModel):
    semantic_calls: int = 0
    jina_tokens_used: int = 0

class MetaInfo(BaseModel):
    version: str
    processing_time: float = Field(0.0, description="Processing time in seconds")
    features_used: List[str] = []

class GeoAnalysisResponse(BaseModel):
    request: RequestInfo
    content: ContentDocument
    geo_analysis: UnifiedAnalysis
    competitors: Optional[CompetitorBlock] = None
    usage: UsageInfo = Field(default_factory=UsageInfo)
    meta: MetaInfo

class DetailedRecommendations(BaseModel):
    url: str
    rank: int
    improvement_areas: List[Recommendation] = []

class CompareResponse(BaseModel):
    query: str
    analyzed_at: datetime = Field(default_factory=_utcnow)
    url_count: int
    failed_count: int
    comparison: ComparisonResult
    errors: List[DocumentError] = []
    detailed_recommendations: Optional[List[DetailedRecommendations]] = None

class BeforeSnapshot(BaseModel):
    url: str
    scores: GeoScores

class AfterSnapshot(BaseModel):
    title: str
    scores: GeoScores

class RewriteRecommendations(BaseModel):
    before: List[Recommendation] = []
    after: List[Recommendation] = []

class ValidateRewriteResponse(BaseModel):
    query: str
    analyzed_at: datetime = Field(default_factory=_utcnow)
    improved: bool
    before: BeforeSnapshot
    after: AfterSnapshot
    delta: DeltaResult
    recommendations: Optional[RewriteRecommendations] = None

class HealthResponse(BaseModel):
    status: str = Field(..., description="Overall system status")
    version: str
    timestamp: datetime = Field(default_factory=_utcnow)
    services: Dict[str, str] = Field(default_factory=dict, description="Individual service statuses")

class ErrorResponse(BaseModel):
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    request_id: Optional[str] = Field(None, description="Request ID for tracking")
    timestamp: datetime = Field(default_factory=_utcnow)
