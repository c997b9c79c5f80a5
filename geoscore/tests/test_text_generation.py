# geoscore/tests/test_text_generation.py
import pytest

from geoscore.config.settings import Settings
from geoscore.core.exceptions import LLMAnalysisException
from geoscore.services.text_generation import (
    OllamaTextGenerator,
    TextGenerator,
    WorkersAITextGenerator,
    create_text_generator,
)
from geoscore.tests.test_content_reader import FakeResponse

class FakePostSession:
    """Stands in for aiohttp.ClientSession.post"""

    def __init__(self, response):
        self.response = response
        self.posts = []
        self.closed = False

    def post(self, url, json=None, headers=None):
        self.posts.append({"url": url, "json": json, "headers": headers or {}})
        return self.response

    async def close(self):
        self.closed = True

MESSAGES = [{"role": "user", "content": "hello"}]

class TestInterface:
    def test_incomplete_provider_cannot_be_constructed(self):
        class Incomplete(TextGenerator):
            async def health_check(self) -> str:
                return "healthy"

        with pytest.raises(TypeError):
            Incomplete()

    @pytest.mark.parametrize("provider,expected", [
        ("ollama", OllamaTextGenerator),
        ("workers-ai", WorkersAITextGenerator),
        ("Workers_AI", WorkersAITextGenerator),
        ("something-else", OllamaTextGenerator),
    ])
    def test_create_text_generator(self, provider, expected):
        assert isinstance(create_text_generator(Settings(LLM_PROVIDER=provider)), expected)

class TestOllama:
    async def test_run_reads_message_content(self):
        generator = OllamaTextGenerator(Settings(OLLAMA_HOST="http://ollama:11434/"))
        session = FakePostSession(FakeResponse(payload={"message": {"content": "{\"triples\": []}"}}))
        generator.session = session

        result = await generator.run("llama3.1:8b", MESSAGES, max_tokens=100, temperature=0.1)

        assert result == {"response": "{\"triples\": []}"}
        post = session.posts[0]
        assert post["url"] == "http://ollama:11434/api/chat"
        assert post["json"]["stream"] is False
        assert post["json"]["options"] == {"temperature": 0.1, "num_predict": 100}

    async def test_missing_model(self):
        generator = OllamaTextGenerator(Settings())
        generator.session = FakePostSession(FakeResponse(status=404, text="model not found"))
        with pytest.raises(LLMAnalysisException, match="not found"):
            await generator.run("missing", MESSAGES, max_tokens=10, temperature=0.0)

class TestWorkersAI:
    async def test_run_uses_account_endpoint(self):
        settings = Settings(CLOUDFLARE_ACCOUNT_ID="acct", CLOUDFLARE_API_TOKEN="token")
        generator = WorkersAITextGenerator(settings)
        session = FakePostSession(FakeResponse(payload={"result": {"response": "ok"}, "success": True}))
        generator.session = session

        result = await generator.run("@cf/meta/llama-3.1-8b-instruct", MESSAGES, max_tokens=50, temperature=0.2)

        assert result == {"response": "ok"}
        post = session.posts[0]
        assert post["url"].endswith("/accounts/acct/ai/run/@cf/meta/llama-3.1-8b-instruct")
        assert post["headers"]["Authorization"] == "Bearer token"

    async def test_missing_credentials(self):
        generator = WorkersAITextGenerator(Settings(CLOUDFLARE_ACCOUNT_ID="", CLOUDFLARE_API_TOKEN=""))
        with pytest.raises(LLMAnalysisException):
            await generator.run("model", MESSAGES, max_tokens=10, temperature=0.0)
        assert await generator.health_check() == "unhealthy - credentials missing"
