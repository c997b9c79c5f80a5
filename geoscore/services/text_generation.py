# geoscore/services/text_generation.py
import asyncio
import aiohttp
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from geoscore.config.settings import Settings, settings as default_settings
from geoscore.core.exceptions import LLMAnalysisException

logger = logging.getLogger(__name__)

Message = Dict[str, str]


class TextGenerator(ABC):
    """Generative-text capability used by the semantic extractor.

    ``run`` returns ``{"response": <text>}``; the text is whatever the model
    produced and is never trusted by callers.
    """

    @abstractmethod
    async def run(
        self,
        model_id: str,
        messages: List[Message],
        max_tokens: int,
        temperature: float
    ) -> Dict[str, Any]:
        ...

    async def health_check(self) -> str:
        return "unknown"

    async def close(self):
        pass


class _SessionMixin:
    timeout: int
    session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Lazy initialization of HTTP session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Content-Type": "application/json"}
            )
        return self.session

    async def close(self):
        """Close HTTP session"""
        if self.session:
            await self.session.close()
            self.session = None


class OllamaTextGenerator(_SessionMixin, TextGenerator):
    def __init__(self, config: Settings = default_settings):
        self.ollama_host = config.OLLAMA_HOST.rstrip("/")
        self.timeout = config.LLM_TIMEOUT
        self.session = None

    async def run(self, model_id, messages, max_tokens, temperature):
        session = await self._get_session()

        payload = {
            "model": model_id,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens
            }
        }

        logger.debug(f"Calling Ollama API: {self.ollama_host}/api/chat (model={model_id})")

        async with session.post(f"{self.ollama_host}/api/chat", json=payload) as response:
            if response.status != 200:
                error_text = await response.text()
                logger.error(f"Ollama API error: HTTP {response.status}")
                if response.status == 404:
                    raise LLMAnalysisException(f"Model {model_id} not found on Ollama server")
                raise LLMAnalysisException(f"Ollama API error {response.status}: {error_text[:200]}")

            try:
                data = await response.json(content_type=None)
            except json.JSONDecodeError as e:
                raise LLMAnalysisException(f"Invalid JSON response from Ollama: {e}")

        message = data.get("message") or {}
        return {"response": message.get("content", "")}

    async def health_check(self) -> str:
        try:
            session = await self._get_session()
            async with session.get(
                f"{self.ollama_host}/api/version",
                timeout=aiohttp.ClientTimeout(total=5)
            ) as response:
                return "healthy" if response.status == 200 else f"unhealthy - HTTP {response.status}"
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Ollama health check failed: {type(e).__name__}: {e}")
            return "unhealthy - ollama not available"


class WorkersAITextGenerator(_SessionMixin, TextGenerator):
    """Cloudflare Workers AI over its REST API (``/accounts/{id}/ai/run/{model}``)."""

    def __init__(self, config: Settings = default_settings):
        self.api_base = config.CLOUDFLARE_API_BASE.rstrip("/")
        self.account_id = config.CLOUDFLARE_ACCOUNT_ID
        self.api_token = config.CLOUDFLARE_API_TOKEN
        self.timeout = config.LLM_TIMEOUT
        self.session = None

    async def run(self, model_id, messages, max_tokens, temperature):
        if not self.account_id or not self.api_token:
            raise LLMAnalysisException("Workers AI credentials are not configured")

        session = await self._get_session()
        url = f"{self.api_base}/accounts/{self.account_id}/ai/run/{model_id}"
        payload = {
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature
        }

        async with session.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_token}"}
        ) as response:
            if response.status != 200:
                error_text = await response.text()
                logger.error(f"Workers AI error: HTTP {response.status}")
                raise LLMAnalysisException(f"Workers AI error {response.status}: {error_text[:200]}")
            data = await response.json(content_type=None)

        result = data.get("result") or {}
        return {"response": result.get("response")}

    async def health_check(self) -> str:
        if not self.account_id or not self.api_token:
            return "unhealthy - credentials missing"
        return "healthy"


def create_text_generator(config: Settings = default_settings) -> TextGenerator:
    if config.LLM_PROVIDER == "workers_ai":
        logger.info("Using Cloudflare Workers AI text generator")
        return WorkersAITextGenerator(config)
    if config.LLM_PROVIDER != "ollama":
        logger.warning(f"Unknown LLM_PROVIDER {config.LLM_PROVIDER!r}, falling back to Ollama")
    return OllamaTextGenerator(config)
