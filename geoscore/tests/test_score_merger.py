# geoscore/tests/test_score_merger.py
import json
import pytest

from geoscore.config.scoring import ScoringConfig
from geoscore.models.internal import ExtractionOutcome
from geoscore.services import text_statistics as ts
from geoscore.services.pattern_analyzer import PatternAnalyzer
from geoscore.services.score_merger import ScoreMerger
from geoscore.services.semantic_extractor import SemanticExtractor
from geoscore.tests.conftest import SAMPLE_CONTENT, SEMANTIC_REPLY, FakeTextGenerator

QUERY = "python testing"

@pytest.fixture
def pattern_result(scoring_config):
    return PatternAnalyzer(scoring_config).analyze(SAMPLE_CONTENT, QUERY)

@pytest.fixture
def merger(scoring_config):
    return ScoreMerger(scoring_config)

def outcome_from(reply, used_fallback=False):
    extractor = SemanticExtractor(FakeTextGenerator(), ScoringConfig())
    if used_fallback:
        return ExtractionOutcome(
            record=extractor.create_fallback_record(SAMPLE_CONTENT, QUERY),
            used_fallback=True,
            fallback_reason="call_failed: test",
        )
    return ExtractionOutcome(record=extractor.parse_response(json.dumps(reply)))

class TestPatternOnly:
    def test_passes_scores_through(self, merger, pattern_result):
        unified = merger.merge(pattern_result)
        assert unified.scores == pattern_result.scores
        assert unified.metrics == pattern_result.metrics
        assert unified.recommendations == pattern_result.recommendations
        assert unified.semantic is None
        assert unified.target_query == QUERY
        assert unified.version == "1.0.0"

    def test_does_not_share_metric_objects(self, merger, pattern_result):
        unified = merger.merge(pattern_result)
        assert unified.metrics is not pattern_result.metrics
        assert unified.chunking is not pattern_result.chunking

class TestWithSemantics:
    def test_citability_from_triples_and_entities(self, merger, pattern_result):
        unified = merger.merge(pattern_result, outcome_from(SEMANTIC_REPLY))

        # 3 triples -> 6, 4 entities -> 2
        assert unified.scores.citability == 4.0
        assert unified.scores.extractability == pattern_result.scores.extractability
        assert unified.scores.readability == pattern_result.scores.readability
        assert unified.scores.overall == ts.round_half_up(
            (unified.scores.extractability + unified.scores.readability + 4.0) / 3, 1
        )

    def test_citability_saturates(self, merger, pattern_result):
        reply = {
            "triples": [{"subject": f"s{i}", "predicate": "p", "object": "o"} for i in range(10)],
            "entities": [{"text": f"e{i}", "type": "PRODUCT"} for i in range(15)],
        }
        unified = merger.merge(pattern_result, outcome_from(reply))
        # min(10, 20) and min(10, 7.5)
        assert unified.scores.citability == 8.8

    def test_semantic_metrics_replace_zeroed_ones(self, merger, pattern_result):
        unified = merger.merge(pattern_result, outcome_from(SEMANTIC_REPLY))

        triples = unified.metrics.semantic_triples
        assert triples.total == 3
        assert triples.density == 3
        assert triples.quality == 0.8
        assert len(triples.examples) == 3

        entities = unified.metrics.entities
        assert entities.total == 4
        assert entities.diversity == 3
        assert entities.generic_references == []

        assert unified.metrics.sentence_length == pattern_result.metrics.sentence_length
        assert pattern_result.metrics.semantic_triples.total == 0

    def test_chunking_reflects_coherence(self, merger, pattern_result):
        reply = dict(SEMANTIC_REPLY, coherence={"coherent": False, "missingContext": ["who is 'they'", "which tool"]})
        unified = merger.merge(pattern_result, outcome_from(reply))
        assert unified.chunking.average_coherence == 0.7
        assert unified.chunking.problematic_boundaries == 2
        assert unified.chunking.chunks == pattern_result.chunking.chunks

    def test_coherent_content(self, merger, pattern_result):
        unified = merger.merge(pattern_result, outcome_from(SEMANTIC_REPLY))
        assert unified.chunking.average_coherence == 0.9
        assert unified.chunking.problematic_boundaries == 0

    def test_fallback_record_zeroes_citability(self, merger, pattern_result):
        outcome = outcome_from(None, used_fallback=True)
        unified = merger.merge(pattern_result, outcome)

        assert unified.scores.citability == 0.0
        assert unified.chunking.problematic_boundaries == 1
        assert unified.semantic.used_fallback is True
        assert unified.recommendations == pattern_result.recommendations
