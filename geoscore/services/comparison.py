# geoscore/services/comparison.py
"""Ranking and before/after deltas over already-computed analyses."""
import logging
from typing import Dict, List, Optional

from geoscore.config.scoring import ScoringConfig
from geoscore.core.exceptions import ComparisonInputException
from geoscore.models.internal import (
    ComparisonResult,
    DeltaResult,
    GeoScores,
    MetricBundle,
    MetricComparison,
    RankedDocument,
    RankEntry,
    ScoreChange,
    ScoreRange,
    Winner,
)
from geoscore.services import text_statistics as ts

logger = logging.getLogger(__name__)

SCORE_DIMENSIONS = ("overall", "extractability", "readability", "citability")

KEY_DIFFERENCE_PHRASES = {
    "extractability": "Winner has significantly better extractability",
    "readability": "Winner has better readability score",
    "citability": "Winner has higher citability",
}


def rank(entries: List[RankEntry], config: Optional[ScoringConfig] = None) -> ComparisonResult:
    config = config or ScoringConfig()
    if len(entries) < 2:
        raise ComparisonInputException("Must provide at least 2 documents to compare")

    # sorted() is stable, so ties keep their input order
    ordered = sorted(entries, key=lambda e: e.analysis.scores.overall, reverse=True)
    winner = ordered[0]
    last = ordered[-1]

    overall_scores = [e.analysis.scores.overall for e in ordered]

    key_differences = []
    for dimension, phrase in KEY_DIFFERENCE_PHRASES.items():
        best = getattr(winner.analysis.scores, dimension)
        worst = getattr(last.analysis.scores, dimension)
        if best > worst + config.key_difference_threshold:
            key_differences.append(f"{phrase} ({best} vs {worst})")

    ranked = [
        RankedDocument(
            document_ref=entry.document_ref,
            rank=index + 1,
            is_winner=index == 0,
            scores=entry.analysis.scores,
            top_recommendation=entry.analysis.recommendations[0].method
            if entry.analysis.recommendations else None,
        )
        for index, entry in enumerate(ordered)
    ]

    return ComparisonResult(
        ranked=ranked,
        winner=Winner(
            document_ref=winner.document_ref,
            overall_score=winner.analysis.scores.overall,
            reason="; ".join(key_differences) if key_differences else "Highest overall GEO score",
        ),
        score_range=ScoreRange(min=min(overall_scores), max=max(overall_scores)),
        average_score=ts.round_half_up(ts.safe_mean(overall_scores), 1),
        key_differences=key_differences,
    )


def score_change(before: float, after: float) -> ScoreChange:
    delta = after - before
    return ScoreChange(
        before=before,
        after=after,
        delta=ts.round_half_up(delta, 1),
        delta_percent=ts.round_half_up(delta / before * 100) if before > 0 else 0,
        improved=delta > 0,
    )


def compare_metric(before: float, after: float) -> MetricComparison:
    delta = after - before
    percent = ts.round_half_up(delta / before * 100) if before > 0 else 0
    return MetricComparison(
        before=ts.round_half_up(before, 1),
        after=ts.round_half_up(after, 1),
        improvement=f"+{percent}%" if delta > 0 else f"{percent}%",
    )


def delta(
    before: GeoScores,
    after: GeoScores,
    before_metrics: Optional[MetricBundle] = None,
    after_metrics: Optional[MetricBundle] = None
) -> DeltaResult:
    changes: Dict[str, ScoreChange] = {
        dimension: score_change(getattr(before, dimension), getattr(after, dimension))
        for dimension in SCORE_DIMENSIONS
    }
    regressions = [dimension for dimension, change in changes.items() if not change.improved]

    metrics: Dict[str, MetricComparison] = {}
    if before_metrics is not None and after_metrics is not None:
        metrics = {
            "claim_density": compare_metric(
                before_metrics.claim_density.current, after_metrics.claim_density.current
            ),
            "avg_sentence_length": compare_metric(
                before_metrics.sentence_length.average, after_metrics.sentence_length.average
            ),
            "list_count": compare_metric(
                before_metrics.structure.list_count, after_metrics.structure.list_count
            ),
            "entity_density": compare_metric(
                before_metrics.entities.density, after_metrics.entities.density
            ),
        }

    if regressions:
        next_steps = ["Address the identified regressions", "Review areas that did not improve"]
    else:
        next_steps = ["Content successfully optimised", "Consider A/B testing the changes"]

    logger.debug(f"Delta computed: overall {changes['overall'].delta:+}, regressions={regressions}")

    return DeltaResult(
        improved=changes["overall"].improved,
        changes=changes,
        regressions=regressions,
        metrics=metrics,
        next_steps=next_steps,
    )
