# geoscore/services/pattern_analyzer.py
import logging
import math
import re
from typing import List, Optional

from geoscore.config.scoring import ScoringConfig
from geoscore.models.internal import (
    ChunkingAnalysis,
    ClaimDensityMetrics,
    ContentChunk,
    DateMarkerMetrics,
    EntityMetrics,
    GeoScores,
    HeadingAlignment,
    IntentType,
    LatentIntent,
    MetricBundle,
    MissingDateContext,
    PatternAnalysisResult,
    Priority,
    ProblematicSentence,
    QueryAlignmentMetrics,
    Recommendation,
    SemanticTripleMetrics,
    SentenceLengthMetrics,
    StructureMetrics,
    WeakSection,
)
from geoscore.services import text_statistics as ts

logger = logging.getLogger(__name__)

FACT_PATTERNS = [
    re.compile(r"\d+%"),
    re.compile(r"\$[\d,]+"),
    re.compile(r"\d+\s*(users|customers|companies|people)", re.IGNORECASE),
    re.compile(r"(increases?|decreases?|improves?|reduces?)\s+by\s+\d+", re.IGNORECASE),
    re.compile(r"(more|less|faster|slower)\s+than", re.IGNORECASE),
]

DATE_PATTERNS = [
    re.compile(r"\d{4}"),
    re.compile(
        r"(january|february|march|april|may|june|july|august|september|october|november|december)",
        re.IGNORECASE,
    ),
    re.compile(r"(today|yesterday|tomorrow|recently|currently|now)", re.IGNORECASE),
    re.compile(r"\d+\s+(days?|weeks?|months?|years?)\s+ago", re.IGNORECASE),
]

TABLE_OF_CONTENTS = re.compile(r"table of contents", re.IGNORECASE)


def count_claims(sentence: str) -> int:
    """Number of fact patterns a sentence matches (each pattern counts once)."""
    return sum(1 for pattern in FACT_PATTERNS if pattern.search(sentence))


def has_date_marker(sentence: str) -> bool:
    return any(pattern.search(sentence) for pattern in DATE_PATTERNS)


class PatternAnalyzer:
    """Deterministic GEO heuristics over plain text or Markdown.

    No I/O and no randomness: the same content and query always produce the
    same result. Entity and semantic-triple metrics are left zeroed here;
    pattern matching cannot extract them reliably, so they are filled in by
    the semantic extractor when augmentation runs.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def analyze(self, content: str, query: str) -> PatternAnalysisResult:
        sentences = ts.split_sentences(content)
        words = ts.split_words(content)

        sentence_length = self._analyze_sentence_length(sentences)
        claim_density = self._analyze_claim_density(content, sentences, len(words))
        date_markers = self._analyze_date_markers(sentences)
        structure = self._analyze_structure(content)
        entities = self._analyze_entities()
        semantic_triples = self._analyze_semantic_triples()
        query_alignment = self._analyze_query_alignment(content, query)

        extractability = ts.round_half_up(
            self._extractability_score(sentence_length, claim_density, date_markers), 1
        )
        readability = ts.round_half_up(self._readability_score(sentence_length, structure), 1)
        citability = ts.round_half_up(self._citability_score(date_markers), 1)
        overall = ts.round_half_up(ts.safe_mean([extractability, readability, citability]), 1)

        logger.debug(
            f"Pattern analysis: {len(sentences)} sentences, {len(words)} words, "
            f"overall={overall} (E={extractability}, R={readability}, C={citability})"
        )

        return PatternAnalysisResult(
            scores=GeoScores(
                overall=overall,
                extractability=extractability,
                readability=readability,
                citability=citability,
            ),
            metrics=MetricBundle(
                sentence_length=sentence_length,
                claim_density=claim_density,
                date_markers=date_markers,
                structure=structure,
                semantic_triples=semantic_triples,
                entities=entities,
                query_alignment=query_alignment,
            ),
            chunking=self._simulate_chunking(content),
            recommendations=self._generate_recommendations(
                sentence_length, claim_density, date_markers, structure
            ),
        )

    def _analyze_sentence_length(self, sentences: List[str]) -> SentenceLengthMetrics:
        word_counts = [ts.word_count(s) for s in sentences]
        average = ts.safe_mean(word_counts)

        problematic = [
            ProblematicSentence(sentence=sentence, word_count=count, location=f"Sentence {i + 1}")
            for i, (sentence, count) in enumerate(zip(sentences, word_counts))
            if count > self.config.long_sentence_words
        ]

        return SentenceLengthMetrics(
            average=ts.round_half_up(average, 1),
            target=self.config.sentence_length_target,
            problematic=problematic[: self.config.sample_size],
        )

    def _analyze_claim_density(self, content: str, sentences: List[str], total_words: int) -> ClaimDensityMetrics:
        claims = sum(count_claims(s) for s in sentences)
        current = claims / total_words * 100 if total_words else 0.0
        target = self.config.claim_density_target

        return ClaimDensityMetrics(
            current=ts.round_half_up(current, 1),
            target=target,
            weak_sections=self._find_weak_sections(content, target),
        )

    def _find_weak_sections(self, content: str, target: float) -> List[WeakSection]:
        headings = ts.find_headings(content)
        sections = ts.split_sections(content)
        weak = []

        for i, body in enumerate(sections):
            section_words = ts.word_count(body)
            if section_words == 0:
                continue
            claims = sum(count_claims(s) for s in ts.split_sentences(body))
            density = claims / section_words * 100
            if density < target:
                # sections[0] is the text before the first heading
                label = headings[i - 1].lstrip("#").strip() if i > 0 else "Introduction"
                weak.append(
                    WeakSection(
                        section=label,
                        claims=claims,
                        word_count=section_words,
                        density=ts.round_half_up(density, 1),
                    )
                )

        return weak[: self.config.sample_size]

    def _analyze_date_markers(self, sentences: List[str]) -> DateMarkerMetrics:
        found = 0
        missing = []

        for i, sentence in enumerate(sentences):
            if has_date_marker(sentence):
                found += 1
            elif count_claims(sentence) > 0:
                missing.append(MissingDateContext(claim=sentence, location=f"Sentence {i + 1}"))

        recommended = max(
            self.config.date_marker_minimum,
            math.floor(len(sentences) * self.config.date_marker_ratio),
        )

        return DateMarkerMetrics(
            found=found,
            recommended=recommended,
            missing_contexts=missing[: self.config.sample_size],
        )

    def _analyze_structure(self, content: str) -> StructureMetrics:
        sections = ts.split_sections(content)
        avg_section_length = ts.safe_mean([len(s) for s in sections])

        return StructureMetrics(
            heading_count=len(ts.find_headings(content)),
            list_count=len(ts.find_list_items(content)),
            avg_section_length=ts.round_half_up(avg_section_length),
            has_table_of_contents=bool(TABLE_OF_CONTENTS.search(content or "")),
        )

    def _analyze_entities(self) -> EntityMetrics:
        return EntityMetrics()

    def _analyze_semantic_triples(self) -> SemanticTripleMetrics:
        return SemanticTripleMetrics()

    def _analyze_query_alignment(self, content: str, query: str) -> QueryAlignmentMetrics:
        coverage = ts.term_coverage(query, content)

        heading_alignment = [
            HeadingAlignment(
                heading=heading.lstrip("#").strip(),
                query_relevance=ts.round_half_up(ts.term_coverage(query, heading), 2),
            )
            for heading in ts.find_headings(content)[: self.config.sample_size]
        ]

        return QueryAlignmentMetrics(
            primary_query=query,
            latent_intents=[
                LatentIntent(
                    intent="Informational",
                    type=IntentType.INFORMATIONAL,
                    coverage=ts.round_half_up(coverage * 10),
                    gaps=[],
                )
            ],
            heading_alignment=heading_alignment,
        )

    def _extractability_score(
        self,
        sentence_length: SentenceLengthMetrics,
        claim_density: ClaimDensityMetrics,
        date_markers: DateMarkerMetrics,
    ) -> float:
        sentence_score = max(
            0.0,
            10 - abs(sentence_length.average - sentence_length.target)
            / self.config.extractability_length_decay,
        )
        claim_score = min(10.0, claim_density.current / claim_density.target * 10)
        date_score = min(10.0, date_markers.found / max(1, date_markers.recommended) * 10)
        return (sentence_score + claim_score + date_score) / 3

    def _readability_score(self, sentence_length: SentenceLengthMetrics, structure: StructureMetrics) -> float:
        # Gentler decay than extractability on purpose
        sentence_score = max(
            0.0,
            10 - abs(sentence_length.average - self.config.sentence_length_target)
            / self.config.readability_length_decay,
        )
        structure_score = min(10.0, structure.heading_count * self.config.heading_score_weight)
        return (sentence_score + structure_score) / 2

    def _citability_score(self, date_markers: DateMarkerMetrics) -> float:
        return min(10.0, date_markers.found / max(1, date_markers.recommended) * 10)

    def _simulate_chunking(self, content: str) -> ChunkingAnalysis:
        """Fixed-size windows with a constant coherence; not a semantic chunker."""
        size = self.config.chunk_size
        chunks = []

        for start in range(0, len(content or ""), size):
            if len(chunks) == self.config.max_chunks:
                break
            piece = content[start:start + size]
            chunks.append(
                ContentChunk(
                    content=piece,
                    semantic_coherence=self.config.chunk_coherence,
                    self_contained=True,
                    missing_context=[],
                    token_count=math.floor(ts.word_count(piece) * self.config.tokens_per_word),
                )
            )

        return ChunkingAnalysis(
            chunks=chunks,
            average_coherence=self.config.chunk_coherence,
            problematic_boundaries=0,
        )

    def _generate_recommendations(
        self,
        sentence_length: SentenceLengthMetrics,
        claim_density: ClaimDensityMetrics,
        date_markers: DateMarkerMetrics,
        structure: StructureMetrics,
    ) -> List[Recommendation]:
        recommendations = []

        if sentence_length.average > self.config.simplification_threshold:
            recommendations.append(Recommendation(
                method="Sentence Simplification",
                priority=Priority.HIGH,
                location="Throughout document",
                current_text=f"Average sentence length: {sentence_length.average} words",
                suggested_text="Break long sentences into shorter ones (15-20 words) to improve AI parsing and fact extraction",
                rationale="Shorter sentences are easier for AI systems to parse and extract discrete facts from. "
                          "The optimal length for LLM comprehension is 15-20 words per sentence.",
            ))

        if claim_density.current < claim_density.target:
            recommendations.append(Recommendation(
                method="Claim Density Enhancement",
                priority=Priority.HIGH,
                location="Key sections",
                current_text=f"{claim_density.current} claims per 100 words",
                suggested_text="Add specific statistics, numbers, and factual claims to increase claim density "
                               f"towards target of {claim_density.target:g} per 100 words",
                rationale="Higher claim density provides more extractable facts for AI systems to cite. "
                          "Quantitative statements, statistics, and specific claims are easier for LLMs to verify and reference.",
            ))

        if date_markers.found < date_markers.recommended:
            recommendations.append(Recommendation(
                method="Temporal Markers",
                priority=Priority.MEDIUM,
                location="Claims and statistics",
                current_text=f"{date_markers.found} temporal markers found",
                suggested_text='Add dates to claims (e.g., "As of 2024...", "In Q2 2025...") to establish temporal context',
                rationale="Temporal markers improve claim verifiability and provide freshness signals to AI systems. "
                          "Dated information helps LLMs assess relevance and recency.",
            ))

        if structure.heading_count < self.config.minimum_headings:
            recommendations.append(Recommendation(
                method="Structural Enhancement",
                priority=Priority.MEDIUM,
                location="Document structure",
                current_text=f"{structure.heading_count} headings found",
                suggested_text="Add descriptive headings to break content into logical sections, "
                               "improving both readability and AI parsing",
                rationale="Clear headings help AI systems understand content hierarchy and identify relevant sections "
                          "for specific queries. Structured content is easier to chunk and cite.",
            ))

        return recommendations
