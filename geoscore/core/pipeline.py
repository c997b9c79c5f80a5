# geoscore/core/pipeline.py
import asyncio
import time
import logging
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from geoscore.config.scoring import ScoringConfig
from geoscore.config.settings import Settings, settings as default_settings
from geoscore.core.exceptions import (
    ComparisonInputException,
    ContentReadException,
    ContentTooLargeException,
    InsufficientAnalysesException,
    PipelineException,
    ValidationException
)
from geoscore.models.internal import (
    AnalyzeOptions,
    CompetitorSummary,
    ContentDocument,
    RankEntry
)
from geoscore.models.responses import (
    AfterSnapshot,
    BeforeSnapshot,
    CompetitorBlock,
    CompareResponse,
    DetailedRecommendations,
    DocumentError,
    GeoAnalysisResponse,
    MetaInfo,
    RequestInfo,
    RewriteRecommendations,
    UsageInfo,
    ValidateRewriteResponse
)
from geoscore.services import comparison
from geoscore.services import text_statistics as ts
from geoscore.services.content_reader import JinaContentReader, ReaderOptions
from geoscore.services.pattern_analyzer import PatternAnalyzer
from geoscore.services.score_merger import ScoreMerger
from geoscore.services.semantic_extractor import SemanticExtractor
from geoscore.services.text_generation import TextGenerator, create_text_generator

logger = logging.getLogger(__name__)

# Reader options for the page under analysis; competitors only need JSON
PRIMARY_READER_OPTIONS = ReaderOptions(
    with_image_captions=True,
    with_links_summary=True,
    use_reader_lm=True,
    return_format="json"
)
COMPETITOR_READER_OPTIONS = ReaderOptions(return_format="json")

DEFAULT_TEXT_TITLE = "Optimized Content"
DEFAULT_TEXT_URL = "text://optimized-content"


class GeoAnalysisPipeline:
    def __init__(
        self,
        config: Settings = default_settings,
        generator: Optional[TextGenerator] = None,
        reader: Optional[JinaContentReader] = None,
        scoring: Optional[ScoringConfig] = None
    ):
        self.settings = config
        self.scoring = scoring or ScoringConfig.from_settings(config)
        self.generator = generator or create_text_generator(config)
        self.reader = reader or JinaContentReader(config=config)

        self.pattern_analyzer = PatternAnalyzer(self.scoring)
        self.semantic_extractor = SemanticExtractor(self.generator, self.scoring)
        self.merger = ScoreMerger(self.scoring)

    async def analyze_url(self, url: str, target_query: str, options: Optional[AnalyzeOptions] = None) -> GeoAnalysisResponse:
        """Read a URL through the content reader, then analyze it"""
        options = options or AnalyzeOptions()
        self._require(url=url, query=target_query)

        reader, owned = self._reader_for(options.jina_api_key)
        try:
            document = await reader.read(url, PRIMARY_READER_OPTIONS)
            return await self._analyze(document, target_query, options, reader, request_url=url)
        finally:
            if owned:
                await reader.close()

    async def analyze_document(
        self,
        document: ContentDocument,
        target_query: str,
        options: Optional[AnalyzeOptions] = None
    ) -> GeoAnalysisResponse:
        options = options or AnalyzeOptions()
        self._require(query=target_query)
        self._check_size(document.content)

        reader, owned = self._reader_for(options.jina_api_key)
        try:
            return await self._analyze(document, target_query, options, reader, request_url=document.url)
        finally:
            if owned:
                await reader.close()

    async def analyze_raw_text(
        self,
        text: str,
        target_query: str,
        options: Optional[AnalyzeOptions] = None,
        title: Optional[str] = None,
        url: Optional[str] = None
    ) -> GeoAnalysisResponse:
        """Analyze caller-supplied text; competitor options are ignored"""
        options = options or AnalyzeOptions()
        self._require(content=text, query=target_query)
        self._check_size(text)

        document = ContentDocument(
            title=title or DEFAULT_TEXT_TITLE,
            url=url or DEFAULT_TEXT_URL,
            content=text
        )
        text_options = options.model_copy(update={"competitor_urls": None, "auto_discover_competitors": False})
        return await self._analyze(
            document, target_query, text_options, self.reader,
            request_url=document.url, extra_features=["text-input"]
        )

    async def _analyze(
        self,
        document: ContentDocument,
        target_query: str,
        options: AnalyzeOptions,
        reader: JinaContentReader,
        request_url: str,
        extra_features: Optional[List[str]] = None
    ) -> GeoAnalysisResponse:
        analysis_id = str(uuid4())
        start_time = time.time()

        logger.info(f"Starting GEO analysis for {request_url[:60]} (query: {target_query[:50]})",
                    extra={"request_id": analysis_id})

        try:
            pattern_result = self.pattern_analyzer.analyze(document.content, target_query)

            semantic_task = (
                self.semantic_extractor.analyze(document.content, target_query, options.ai_model)
                if options.semantic_analysis else _none()
            )
            semantic, competitors = await asyncio.gather(
                semantic_task,
                self._collect_competitors(target_query, options, reader)
            )

            geo_analysis = self.merger.merge(pattern_result, semantic)

        except Exception as e:
            logger.error(f"GEO analysis failed for {request_url[:60]}: {type(e).__name__}: {e}",
                         extra={"request_id": analysis_id}, exc_info=True)
            raise PipelineException(f"Analysis processing failed: {str(e)}")

        features = ["pattern-analysis", *(extra_features or [])]
        if semantic is not None:
            if semantic.used_fallback:
                features.append(f"llm-fallback: {semantic.fallback_reason}")
            else:
                features.append("llm-semantic-analysis")
        if competitors is not None:
            features.append("competitor-analysis")

        processing_time = time.time() - start_time
        logger.info(f"GEO analysis completed in {processing_time:.2f}s, overall={geo_analysis.scores.overall}",
                    extra={"request_id": analysis_id})

        return GeoAnalysisResponse(
            request=RequestInfo(
                url=request_url,
                query=target_query,
                competitor_urls=options.competitor_urls
            ),
            content=document,
            geo_analysis=geo_analysis,
            competitors=competitors,
            usage=UsageInfo(
                semantic_calls=1 if semantic is not None else 0,
                jina_tokens_used=document.usage_tokens
            ),
            meta=MetaInfo(
                version=self.scoring.version,
                processing_time=processing_time,
                features_used=features
            )
        )

    async def _collect_competitors(
        self,
        query: str,
        options: AnalyzeOptions,
        reader: JinaContentReader
    ) -> Optional[CompetitorBlock]:
        """Explicit competitor URLs win over auto-discovery; failures are recorded, not raised"""
        documents: List[ContentDocument] = []
        errors: List[DocumentError] = []

        if options.competitor_urls:
            results = await reader.read_batch(options.competitor_urls, COMPETITOR_READER_OPTIONS)
            for url, result in zip(options.competitor_urls, results):
                if isinstance(result, Exception):
                    logger.warning(f"Competitor read failed for {url}: {result}")
                    errors.append(DocumentError(url=url, error=str(result)))
                else:
                    documents.append(result)
        elif options.auto_discover_competitors:
            try:
                documents = await reader.search(query)
            except ContentReadException as e:
                logger.warning(f"Competitor discovery failed for '{query[:30]}': {e}")
                errors.append(DocumentError(url=query, error=str(e)))
        else:
            return None

        return CompetitorBlock(
            query=query,
            results=documents,
            analyses=[summarize_competitor(d) for d in documents],
            errors=errors
        )

    async def compare_urls(
        self,
        urls: List[str],
        query: str,
        ai_model: Optional[str] = None,
        output_format: str = "detailed"
    ) -> CompareResponse:
        minimum = self.settings.MIN_COMPARE_URLS
        maximum = self.settings.MAX_COMPARE_URLS
        if not urls or len(urls) < minimum:
            raise ComparisonInputException(f"Must provide at least {minimum} URLs to compare")
        if len(urls) > maximum:
            raise ComparisonInputException(f"Maximum {maximum} URLs allowed for comparison")
        self._require(query=query)

        options = AnalyzeOptions(ai_model=ai_model)
        results = await asyncio.gather(
            *(self.analyze_url(url, query, options) for url in urls),
            return_exceptions=True
        )

        entries: List[RankEntry] = []
        errors: List[DocumentError] = []
        for url, result in zip(urls, results):
            if isinstance(result, Exception):
                if not isinstance(result, ContentReadException):
                    logger.error(f"Unexpected analysis failure for {url}: {type(result).__name__}: {result}",
                                 exc_info=result)
                errors.append(DocumentError(url=url, error=str(result) or type(result).__name__))
            else:
                entries.append(RankEntry(document_ref=url, analysis=result.geo_analysis))

        if len(entries) < minimum:
            raise InsufficientAnalysesException([e.model_dump() for e in errors], required=minimum)

        ranked = comparison.rank(entries, self.scoring)
        logger.info(f"Compared {len(entries)} URLs ({len(errors)} failed), winner: {ranked.winner.document_ref}")

        detailed = None
        if output_format == "detailed":
            by_ref = {e.document_ref: e.analysis for e in entries}
            detailed = [
                DetailedRecommendations(
                    url=doc.document_ref,
                    rank=doc.rank,
                    improvement_areas=by_ref[doc.document_ref].recommendations[: self.scoring.sample_size]
                )
                for doc in ranked.ranked
            ]

        return CompareResponse(
            query=query,
            url_count=len(entries),
            failed_count=len(errors),
            comparison=ranked,
            errors=errors,
            detailed_recommendations=detailed
        )

    async def validate_rewrite(
        self,
        original_url: str,
        optimized_content: str,
        target_query: str,
        title: Optional[str] = None,
        ai_model: Optional[str] = None,
        output_format: str = "detailed"
    ) -> ValidateRewriteResponse:
        self._require(url=original_url, content=optimized_content, query=target_query)
        self._check_size(optimized_content)

        options = AnalyzeOptions(ai_model=ai_model)
        before, after = await asyncio.gather(
            self.analyze_url(original_url, target_query, options),
            self.analyze_raw_text(optimized_content, target_query, options,
                                  title=title or DEFAULT_TEXT_TITLE, url=original_url),
            return_exceptions=True
        )
        for result in (before, after):
            if isinstance(result, Exception):
                raise result

        before_analysis = before.geo_analysis
        after_analysis = after.geo_analysis
        delta = comparison.delta(
            before_analysis.scores, after_analysis.scores,
            before_analysis.metrics, after_analysis.metrics
        )

        recommendations = None
        if output_format == "detailed":
            recommendations = RewriteRecommendations(
                before=before_analysis.recommendations[:3],
                after=after_analysis.recommendations[:3]
            )

        return ValidateRewriteResponse(
            query=target_query,
            improved=delta.improved,
            before=BeforeSnapshot(url=original_url, scores=before_analysis.scores),
            after=AfterSnapshot(title=title or DEFAULT_TEXT_TITLE, scores=after_analysis.scores),
            delta=delta,
            recommendations=recommendations
        )

    def _reader_for(self, api_key: Optional[str]) -> Tuple[JinaContentReader, bool]:
        """Shared reader, or a short-lived one when the caller supplies their own key"""
        if api_key:
            return JinaContentReader(api_key=api_key, config=self.settings), True
        return self.reader, False

    def _require(self, **fields: Optional[str]):
        missing = [name for name, value in fields.items() if not value or not value.strip()]
        if missing:
            raise ValidationException(f"Missing required fields: {', '.join(missing)}")

    def _check_size(self, content: str):
        if len(content) > self.settings.MAX_CONTENT_SIZE:
            raise ContentTooLargeException(len(content), self.settings.MAX_CONTENT_SIZE)

    async def health_check(self) -> Dict[str, str]:
        checks = {"pattern_analyzer": "healthy"}
        checks["text_generator"] = await self._check_component_health(
            self.generator.health_check(), "text_generator"
        )
        unhealthy = [k for k, v in checks.items() if v != "healthy"]
        overall = "healthy" if not unhealthy else "degraded"
        return {"overall": overall, **checks}

    async def _check_component_health(self, health_coro, component_name: str, timeout: float = 5.0):
        try:
            return await asyncio.wait_for(health_coro, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Health check timeout for {component_name}")
            return "timeout"
        except Exception as e:
            logger.error(f"Health check error for {component_name}: {e}")
            return "unhealthy"

    async def shutdown(self):
        logger.info("Shutting down pipeline components...")
        await asyncio.gather(
            self.reader.close(),
            self.generator.close(),
            return_exceptions=True
        )
        logger.info("Pipeline shutdown completed")


def summarize_competitor(document: ContentDocument) -> CompetitorSummary:
    words = ts.split_words(document.content)
    sentences = ts.split_sentences(document.content)
    return CompetitorSummary(
        url=document.url,
        title=document.title,
        word_count=len(words),
        sentence_count=len(sentences),
        avg_sentence_length=ts.round_half_up(len(words) / len(sentences), 1) if sentences else 0,
        heading_count=len(ts.find_headings(document.content))
    )


async def _none():
    return None
