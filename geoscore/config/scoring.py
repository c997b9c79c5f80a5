# geoscore/config/scoring.py
from pydantic import BaseModel, ConfigDict

DEFAULT_AI_MODEL = "llama3.1:8b"


class ScoringConfig(BaseModel):
    """Immutable scoring constants shared by every analyzer.

    One instance is built per pipeline and handed to each component, so
    analyzers hold no process-wide state and can be exercised with varied
    values in tests.
    """

    model_config = ConfigDict(frozen=True)

    version: str = "1.0.0"

    # Sentence length
    sentence_length_target: int = 20
    long_sentence_words: int = 30
    simplification_threshold: float = 25
    extractability_length_decay: float = 2
    readability_length_decay: float = 3

    # Claims and dates
    claim_density_target: float = 4
    date_marker_minimum: int = 5
    date_marker_ratio: float = 0.1

    # Structure
    heading_score_weight: float = 2
    minimum_headings: int = 3

    # Sampling caps
    sample_size: int = 5
    triple_examples: int = 3

    # Chunk simulation
    chunk_size: int = 500
    max_chunks: int = 3
    chunk_coherence: float = 0.8
    tokens_per_word: float = 1.3

    # Semantic extraction
    ai_model: str = DEFAULT_AI_MODEL
    extraction_char_budget: int = 2000
    llm_max_tokens: int = 1500
    llm_temperature: float = 0.1
    max_triples: int = 10
    max_entities: int = 15
    max_missing_context: int = 5
    default_triple_confidence: float = 0.7
    default_entity_importance: float = 0.5
    default_relevance: float = 0.5

    # Merge
    triple_score_weight: float = 2
    entity_score_divisor: float = 2
    coherent_chunk_score: float = 0.9
    incoherent_chunk_score: float = 0.7

    # Comparison
    key_difference_threshold: float = 1.0

    @classmethod
    def from_settings(cls, settings) -> "ScoringConfig":
        return cls(
            version=settings.VERSION,
            ai_model=settings.LLM_MODEL,
            llm_max_tokens=settings.LLM_MAX_TOKENS,
            llm_temperature=settings.LLM_TEMPERATURE,
        )
