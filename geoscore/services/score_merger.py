# geoscore/services/score_merger.py
import logging
from datetime import datetime, timezone
from typing import Optional

from geoscore.config.scoring import ScoringConfig
from geoscore.models.internal import (
    EntityMetrics,
    ExtractionOutcome,
    GeoScores,
    PatternAnalysisResult,
    SemanticTripleMetrics,
    UnifiedAnalysis,
)
from geoscore.services import text_statistics as ts
from geoscore.services.semantic_extractor import average_confidence

logger = logging.getLogger(__name__)


class ScoreMerger:
    """Fuses a pattern analysis with an optional semantic extraction.

    Semantic data only ever re-scores citability (and therefore overall);
    extractability, readability and the recommendations always come from the
    pattern pass unchanged.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def merge(
        self,
        pattern_result: PatternAnalysisResult,
        semantic: Optional[ExtractionOutcome] = None
    ) -> UnifiedAnalysis:
        analyzed_at = datetime.now(timezone.utc)
        target_query = pattern_result.metrics.query_alignment.primary_query

        if semantic is None:
            return UnifiedAnalysis(
                analyzed_at=analyzed_at,
                version=self.config.version,
                target_query=target_query,
                scores=pattern_result.scores.model_copy(),
                metrics=pattern_result.metrics.model_copy(deep=True),
                chunking=pattern_result.chunking.model_copy(deep=True),
                recommendations=list(pattern_result.recommendations),
            )

        record = semantic.record
        triples = record.triples
        entities = record.entities

        metrics = pattern_result.metrics.model_copy(
            deep=True,
            update={
                "semantic_triples": SemanticTripleMetrics(
                    total=len(triples),
                    density=len(triples),
                    quality=average_confidence(triples),
                    examples=triples[: self.config.triple_examples],
                ),
                "entities": EntityMetrics(
                    total=len(entities),
                    density=len(entities),
                    diversity=len({e.type for e in entities}),
                    generic_references=[],
                ),
            },
        )

        chunking = pattern_result.chunking.model_copy(
            deep=True,
            update={
                "average_coherence": self.config.coherent_chunk_score
                if record.coherence.coherent else self.config.incoherent_chunk_score,
                "problematic_boundaries": len(record.coherence.missing_context),
            },
        )

        triple_score = min(10.0, len(triples) * self.config.triple_score_weight)
        entity_score = min(10.0, len(entities) / self.config.entity_score_divisor)
        citability = ts.round_half_up((triple_score + entity_score) / 2, 1)

        base = pattern_result.scores
        scores = GeoScores(
            extractability=base.extractability,
            readability=base.readability,
            citability=citability,
            overall=ts.round_half_up(ts.safe_mean([base.extractability, base.readability, citability]), 1),
        )

        logger.debug(
            f"Merged semantic data (fallback={semantic.used_fallback}): "
            f"citability {base.citability} -> {citability}, overall {base.overall} -> {scores.overall}"
        )

        return UnifiedAnalysis(
            analyzed_at=analyzed_at,
            version=self.config.version,
            target_query=target_query,
            scores=scores,
            metrics=metrics,
            chunking=chunking,
            recommendations=list(pattern_result.recommendations),
            semantic=semantic,
        )
