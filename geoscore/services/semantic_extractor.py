# geoscore/services/semantic_extractor.py
import json
import logging
import math
import re
import time
from typing import Any, Dict, List, Optional

from geoscore.config.scoring import ScoringConfig
from geoscore.core.exceptions import ExtractionCallException, ExtractionParseException
from geoscore.models.internal import (
    ChunkCoherence,
    EntityType,
    ExtractionOutcome,
    SemanticEntity,
    SemanticRecord,
    SemanticTriple,
)
from geoscore.services import text_statistics as ts
from geoscore.services.text_generation import TextGenerator

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "LLM analysis failed - using fallback"

SYSTEM_PROMPT = (
    "You are a semantic analysis expert. Return only valid JSON, "
    "no markdown formatting or additional text."
)

CODE_FENCE = re.compile(r"```(?:json)?\n?", re.IGNORECASE)
JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

ENTITY_TYPES = {t.value for t in EntityType}


class SemanticExtractor:
    """Extracts triples, entities, coherence and relevance through an LLM.

    The model reply is treated as untrusted text: it may carry prose, code
    fences, truncated JSON or well-formed JSON with wrong values. Parsing is
    permissive field by field and anything unusable raises one of the
    extraction exceptions, which ``analyze`` turns into a fallback record.
    """

    def __init__(self, generator: TextGenerator, config: Optional[ScoringConfig] = None):
        self.generator = generator
        self.config = config or ScoringConfig()

    async def analyze(self, content: str, target_query: str, model_id: Optional[str] = None) -> ExtractionOutcome:
        """Never raises: every failure becomes a deterministic fallback record."""
        model = model_id or self.config.ai_model
        start_time = time.time()

        try:
            record = await self.extract_semantics(content, target_query, model)
        except ExtractionCallException as e:
            logger.warning(f"Semantic extraction call failed ({model}): {e}")
            return self._fallback_outcome(content, target_query, model, f"call_failed: {e}")
        except ExtractionParseException as e:
            logger.warning(f"Semantic extraction reply unusable ({model}): {e}")
            return self._fallback_outcome(content, target_query, model, f"parse_failed: {e}")
        except Exception as e:
            logger.error(f"Unexpected semantic extraction error ({model}): {type(e).__name__}: {e}", exc_info=True)
            return self._fallback_outcome(content, target_query, model, f"error: {type(e).__name__}: {e}")

        logger.info(
            f"Semantic extraction completed in {time.time() - start_time:.2f}s: "
            f"{len(record.triples)} triples, {len(record.entities)} entities"
        )
        return ExtractionOutcome(record=record, used_fallback=False, model=model)

    async def extract_semantics(self, content: str, target_query: str, model_id: str) -> SemanticRecord:
        truncated = self.truncate_content(content, self.config.extraction_char_budget)
        prompt = self.build_prompt(truncated, target_query)
        reply = await self._call_model(prompt, model_id)
        return self.parse_response(reply)

    def truncate_content(self, content: str, max_chars: int) -> str:
        """Keep whole sentences only, stopping before the budget is exceeded."""
        if len(content) <= max_chars:
            return content

        truncated = ""
        for sentence in ts.SENTENCE_BOUNDARY.split(content):
            if not sentence.strip():
                continue
            if len(truncated + sentence) > max_chars:
                break
            truncated += sentence + ". "

        return truncated.strip()

    def build_prompt(self, content: str, query: str) -> str:
        return f"""You are a semantic analysis expert for AI search optimization.

Analyze this content for the query: "{query}"

Content:
{content}

CRITICAL: You MUST return ONLY a valid JSON object with this EXACT structure:

{{
  "triples": [
    {{"subject": "string", "predicate": "string", "object": "string", "confidence": 0.9}}
  ],
  "entities": [
    {{"text": "string", "type": "PERSON|ORGANIZATION|LOCATION|PRODUCT|TECHNOLOGY|METRIC", "context": "string", "importance": 0.8}}
  ],
  "coherence": {{
    "coherent": true,
    "missingContext": ["list of missing context"],
    "selfContained": true
  }},
  "relevance": 0.85
}}

Rules:
1. Extract 3-5 factual semantic triples (subject-predicate-object) related to "{query}"
2. Identify 5-10 key entities with importance scores (0-1)
3. Assess if content makes sense without external context
4. Rate topical relevance to query (0-1)
5. Return ONLY the JSON object above - NO other text, NO markdown, NO explanations

Begin your response with {{ and end with }}"""

    async def _call_model(self, prompt: str, model_id: str) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        try:
            result = await self.generator.run(
                model_id,
                messages=messages,
                max_tokens=self.config.llm_max_tokens,
                temperature=self.config.llm_temperature,
            )
        except Exception as e:
            raise ExtractionCallException(f"LLM call failed: {type(e).__name__}: {e}") from e

        raw = result.get("response") if isinstance(result, dict) else None
        if not raw:
            raise ExtractionCallException("LLM returned no response field")
        if not isinstance(raw, str):
            raw = json.dumps(raw)
        if not raw.strip():
            raise ExtractionCallException("LLM returned empty response")

        logger.debug(f"LLM reply preview: {raw[:200]}...")
        return raw

    def parse_response(self, reply: str) -> SemanticRecord:
        cleaned = CODE_FENCE.sub("", reply.strip()).replace("`", "")

        match = JSON_OBJECT.search(cleaned)
        if not match:
            raise ExtractionParseException("No JSON object found in response")

        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ExtractionParseException(f"Invalid JSON in response: {e}") from e

        if not isinstance(parsed, dict):
            raise ExtractionParseException("Response JSON is not an object")

        triples = parsed.get("triples", parsed.get("semanticTriples"))
        entities = parsed.get("entities")
        if triples is None and entities is None:
            raise ExtractionParseException("Invalid JSON structure: no triples or entities")

        return SemanticRecord(
            triples=self._validate_triples(triples),
            entities=self._validate_entities(entities),
            coherence=self._validate_coherence(parsed.get("coherence")),
            relevance=_unit_interval(parsed.get("relevance"), self.config.default_relevance),
        )

    def _validate_triples(self, triples: Any) -> List[SemanticTriple]:
        if not isinstance(triples, list):
            return []

        valid = []
        for t in triples:
            if not isinstance(t, dict):
                continue
            subject, predicate, obj = (_text(t.get(k)) for k in ("subject", "predicate", "object"))
            if not (subject and predicate and obj):
                continue
            valid.append(SemanticTriple(
                subject=subject,
                predicate=predicate,
                object=obj,
                confidence=_unit_interval(t.get("confidence"), self.config.default_triple_confidence),
            ))
            if len(valid) == self.config.max_triples:
                break
        return valid

    def _validate_entities(self, entities: Any) -> List[SemanticEntity]:
        if not isinstance(entities, list):
            return []

        valid = []
        for e in entities:
            if not isinstance(e, dict):
                continue
            text = _text(e.get("text"))
            entity_type = e.get("type")
            if not text or not isinstance(entity_type, str) or entity_type not in ENTITY_TYPES:
                continue
            valid.append(SemanticEntity(
                text=text,
                type=EntityType(entity_type),
                context=_text(e.get("context")),
                importance=_unit_interval(e.get("importance"), self.config.default_entity_importance),
            ))
            if len(valid) == self.config.max_entities:
                break
        return valid

    def _validate_coherence(self, coherence: Any) -> ChunkCoherence:
        if not isinstance(coherence, dict):
            return ChunkCoherence()

        missing = coherence.get("missingContext", coherence.get("missing_context"))
        self_contained = coherence.get("selfContained", coherence.get("self_contained"))

        return ChunkCoherence(
            coherent=coherence.get("coherent") is not False,
            missing_context=[str(m) for m in missing][: self.config.max_missing_context]
            if isinstance(missing, list) else [],
            self_contained=self_contained is not False,
        )

    def create_fallback_record(self, content: str, query: str) -> SemanticRecord:
        return SemanticRecord(
            triples=[],
            entities=[],
            coherence=ChunkCoherence(
                coherent=True,
                missing_context=[FALLBACK_NOTICE],
                self_contained=True,
            ),
            relevance=min(1.0, ts.term_coverage(query, content)),
        )

    def _fallback_outcome(self, content: str, query: str, model: str, reason: str) -> ExtractionOutcome:
        return ExtractionOutcome(
            record=self.create_fallback_record(content, query),
            used_fallback=True,
            fallback_reason=reason,
            model=model,
        )


def average_confidence(triples: List[SemanticTriple]) -> float:
    if not triples:
        return 0
    return ts.round_half_up(sum(t.confidence for t in triples) / len(triples), 2)


def average_importance(entities: List[SemanticEntity]) -> float:
    if not entities:
        return 0
    return ts.round_half_up(sum(e.importance for e in entities) / len(entities), 2)


def group_entity_types(entities: List[SemanticEntity]) -> Dict[str, int]:
    groups: Dict[str, int] = {}
    for e in entities:
        groups[e.type.value] = groups.get(e.type.value, 0) + 1
    return groups


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _unit_interval(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return default
    return min(1.0, max(0.0, float(value)))
