# geoscore/models/internal.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict
from datetime import datetime
from enum import Enum

class EntityType(str, Enum):
    PERSON = "PERSON"
    ORGANIZATION = "ORGANIZATION"
    LOCATION = "LOCATION"
    PRODUCT = "PRODUCT"
    TECHNOLOGY = "TECHNOLOGY"
    METRIC = "METRIC"

class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class IntentType(str, Enum):
    COMPARATIVE = "comparative"
    EVALUATIVE = "evaluative"
    TEMPORAL = "temporal"
    DECISIONAL = "decisional"
    INFORMATIONAL = "informational"

class ContentDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    url: str
    content: str
    description: Optional[str] = None
    published_time: Optional[str] = None
    usage_tokens: int = 0

# Scores and metrics

class GeoScores(BaseModel):
    overall: float = Field(ge=0.0, le=10.0)
    extractability: float = Field(ge=0.0, le=10.0)
    readability: float = Field(ge=0.0, le=10.0)
    citability: float = Field(ge=0.0, le=10.0)

class ProblematicSentence(BaseModel):
    sentence: str
    word_count: int
    location: str

class SentenceLengthMetrics(BaseModel):
    average: float
    target: int
    problematic: List[ProblematicSentence] = []

class WeakSection(BaseModel):
    section: str
    claims: int
    word_count: int
    density: float

class ClaimDensityMetrics(BaseModel):
    current: float
    target: float
    weak_sections: List[WeakSection] = []

class MissingDateContext(BaseModel):
    claim: str
    location: str
    needs_date: bool = True

class DateMarkerMetrics(BaseModel):
    found: int
    recommended: int
    missing_contexts: List[MissingDateContext] = []

class StructureMetrics(BaseModel):
    heading_count: int
    list_count: int
    avg_section_length: int
    has_table_of_contents: bool

class SemanticTriple(BaseModel):
    subject: str
    predicate: str
    object: str
    confidence: float = Field(ge=0.0, le=1.0)

class SemanticTripleMetrics(BaseModel):
    total: int = 0
    density: float = 0
    quality: float = 0
    examples: List[SemanticTriple] = []

class GenericReference(BaseModel):
    text: str
    location: str
    suggested_replacement: str

class EntityMetrics(BaseModel):
    total: int = 0
    density: float = 0
    diversity: int = 0
    generic_references: List[GenericReference] = []

class LatentIntent(BaseModel):
    intent: str
    type: IntentType
    coverage: int = Field(ge=0, le=10)
    gaps: List[str] = []

class HeadingAlignment(BaseModel):
    heading: str
    query_relevance: float = Field(ge=0.0, le=1.0)
    suggested_rephrase: Optional[str] = None

class QueryAlignmentMetrics(BaseModel):
    primary_query: str
    latent_intents: List[LatentIntent] = []
    heading_alignment: List[HeadingAlignment] = []

class MetricBundle(BaseModel):
    sentence_length: SentenceLengthMetrics
    claim_density: ClaimDensityMetrics
    date_markers: DateMarkerMetrics
    structure: StructureMetrics
    semantic_triples: SemanticTripleMetrics
    entities: EntityMetrics
    query_alignment: QueryAlignmentMetrics

class ContentChunk(BaseModel):
    content: str
    semantic_coherence: float = Field(ge=0.0, le=1.0)
    self_contained: bool
    missing_context: List[str] = []
    token_count: int

class ChunkingAnalysis(BaseModel):
    chunks: List[ContentChunk] = []
    average_coherence: float
    problematic_boundaries: int

class Recommendation(BaseModel):
    method: str
    priority: Priority
    location: str
    current_text: str
    suggested_text: str
    rationale: str

class PatternAnalysisResult(BaseModel):
    scores: GeoScores
    metrics: MetricBundle
    chunking: ChunkingAnalysis
    recommendations: List[Recommendation] = []

# Semantic extraction

class SemanticEntity(BaseModel):
    text: str
    type: EntityType
    context: str = ""
    importance: float = Field(ge=0.0, le=1.0)

class ChunkCoherence(BaseModel):
    coherent: bool = True
    missing_context: List[str] = []
    self_contained: bool = True

class SemanticRecord(BaseModel):
    triples: List[SemanticTriple] = []
    entities: List[SemanticEntity] = []
    coherence: ChunkCoherence = Field(default_factory=ChunkCoherence)
    relevance: float = Field(ge=0.0, le=1.0)

class ExtractionOutcome(BaseModel):
    """Either a parsed record or a fallback record plus the reason it was used"""
    record: SemanticRecord
    used_fallback: bool = False
    fallback_reason: Optional[str] = None
    model: Optional[str] = None

class UnifiedAnalysis(BaseModel):
    analyzed_at: datetime
    version: str
    target_query: str
    scores: GeoScores
    metrics: MetricBundle
    chunking: ChunkingAnalysis
    recommendations: List[Recommendation] = []
    semantic: Optional[ExtractionOutcome] = None

# Comparison

class RankEntry(BaseModel):
    document_ref: str
    analysis: UnifiedAnalysis

class RankedDocument(BaseModel):
    document_ref: str
    rank: int
    is_winner: bool
    scores: GeoScores
    top_recommendation: Optional[str] = None

class Winner(BaseModel):
    document_ref: str
    overall_score: float
    reason: str

class ScoreRange(BaseModel):
    min: float
    max: float

class ComparisonResult(BaseModel):
    ranked: List[RankedDocument]
    winner: Winner
    score_range: ScoreRange
    average_score: float
    key_differences: List[str] = []

class ScoreChange(BaseModel):
    before: float
    after: float
    delta: float
    delta_percent: int
    improved: bool

class MetricComparison(BaseModel):
    before: float
    after: float
    improvement: str

class DeltaResult(BaseModel):
    improved: bool
    changes: Dict[str, ScoreChange]
    regressions: List[str] = []
    metrics: Dict[str, MetricComparison] = {}
    next_steps: List[str] = []

class CompetitorSummary(BaseModel):
    url: str
    title: str
    word_count: int
    sentence_count: int
    avg_sentence_length: float
    heading_count: int

class AnalyzeOptions(BaseModel):
    ai_model: Optional[str] = None
    competitor_urls: Optional[List[str]] = None
    auto_discover_competitors: bool = False
    semantic_analysis: bool = True
    jina_api_key: Optional[str] = None
