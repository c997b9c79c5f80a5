# geoscore/tests/test_comparison.py
import pytest

from geoscore.core.exceptions import ComparisonInputException
from geoscore.models.internal import GeoScores, RankEntry
from geoscore.services import comparison
from geoscore.services.pattern_analyzer import PatternAnalyzer
from geoscore.services.score_merger import ScoreMerger
from geoscore.tests.conftest import SAMPLE_CONTENT

@pytest.fixture
def base_analysis(scoring_config):
    result = PatternAnalyzer(scoring_config).analyze(SAMPLE_CONTENT, "python testing")
    return ScoreMerger(scoring_config).merge(result)

def scores(overall, extractability=5.0, readability=5.0, citability=5.0):
    return GeoScores(overall=overall, extractability=extractability, readability=readability, citability=citability)

def entry(analysis, ref, geo_scores):
    return RankEntry(document_ref=ref, analysis=analysis.model_copy(update={"scores": geo_scores}))

class TestRank:
    def test_winner_range_and_average(self, base_analysis):
        entries = [
            entry(base_analysis, "a", scores(7.2)),
            entry(base_analysis, "b", scores(9.1)),
            entry(base_analysis, "c", scores(5.0)),
        ]
        result = comparison.rank(entries)

        assert result.winner.document_ref == "b"
        assert result.winner.overall_score == 9.1
        assert result.score_range.min == 5.0
        assert result.score_range.max == 9.1
        assert result.average_score == 7.1
        assert [d.document_ref for d in result.ranked] == ["b", "a", "c"]
        assert [d.rank for d in result.ranked] == [1, 2, 3]
        assert [d.is_winner for d in result.ranked] == [True, False, False]

    def test_ties_keep_input_order(self, base_analysis):
        entries = [entry(base_analysis, ref, scores(6.0)) for ref in ("first", "second", "third")]
        result = comparison.rank(entries)
        assert [d.document_ref for d in result.ranked] == ["first", "second", "third"]

    def test_key_differences(self, base_analysis):
        entries = [
            entry(base_analysis, "winner", scores(8.0, extractability=9.0, readability=6.0)),
            entry(base_analysis, "loser", scores(5.0, extractability=4.0, readability=5.5)),
        ]
        result = comparison.rank(entries)

        assert result.key_differences == ["Winner has significantly better extractability (9.0 vs 4.0)"]
        assert result.winner.reason == result.key_differences[0]

    def test_no_key_differences(self, base_analysis):
        entries = [entry(base_analysis, "a", scores(5.5)), entry(base_analysis, "b", scores(5.0))]
        result = comparison.rank(entries)
        assert result.key_differences == []
        assert result.winner.reason == "Highest overall GEO score"

    def test_top_recommendation(self, base_analysis):
        entries = [entry(base_analysis, "a", scores(5.5)), entry(base_analysis, "b", scores(5.0))]
        result = comparison.rank(entries)
        expected = base_analysis.recommendations[0].method if base_analysis.recommendations else None
        assert result.ranked[0].top_recommendation == expected

    def test_requires_two_entries(self, base_analysis):
        with pytest.raises(ComparisonInputException) as exc_info:
            comparison.rank([entry(base_analysis, "only", scores(5.0))])
        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "COMPARISON_INPUT_ERROR"

class TestDelta:
    def test_score_change(self):
        change = comparison.score_change(5.0, 7.5)
        assert change.delta == 2.5
        assert change.delta_percent == 50
        assert change.improved is True

    def test_zero_baseline(self):
        change = comparison.score_change(0.0, 3.0)
        assert change.delta == 3.0
        assert change.delta_percent == 0
        assert change.improved is True

    def test_unchanged_is_not_improved(self):
        assert comparison.score_change(4.0, 4.0).improved is False

    def test_delta_regressions(self):
        result = comparison.delta(
            scores(5.0, extractability=4.0, readability=6.0, citability=5.0),
            scores(6.0, extractability=7.0, readability=5.0, citability=5.0),
        )
        assert result.improved is True
        assert set(result.changes) == {"overall", "extractability", "readability", "citability"}
        assert result.regressions == ["readability", "citability"]
        assert result.next_steps[0] == "Address the identified regressions"
        assert result.metrics == {}

    def test_delta_all_improved(self):
        result = comparison.delta(scores(4.0, 4.0, 4.0, 4.0), scores(6.0, 6.0, 6.0, 6.0))
        assert result.regressions == []
        assert result.next_steps == ["Content successfully optimised", "Consider A/B testing the changes"]

    def test_metric_comparisons(self, base_analysis):
        result = comparison.delta(
            base_analysis.scores, base_analysis.scores, base_analysis.metrics, base_analysis.metrics
        )
        assert set(result.metrics) == {"claim_density", "avg_sentence_length", "list_count", "entity_density"}
        assert result.metrics["list_count"].improvement == "0%"
        assert result.improved is False

    def test_compare_metric_formats_percent(self):
        assert comparison.compare_metric(4, 5).improvement == "+25%"
        assert comparison.compare_metric(4, 3).improvement == "-25%"
        assert comparison.compare_metric(0, 3).improvement == "0%"
