# geoscore/tests/test_api.py
import pytest
from fastapi.testclient import TestClient

from geoscore.api.dependencies import get_pipeline
from geoscore.core.pipeline import GeoAnalysisPipeline
from geoscore.main import app
from geoscore.services.content_reader import JinaContentReader
from geoscore.tests.conftest import SAMPLE_CONTENT
from geoscore.tests.test_content_reader import FakeResponse, FakeSession

GUIDE = "https://example.com/guide"
SHORT = "https://example.com/short"

class TestAPI:
    """HTTP surface with the pipeline dependency overridden"""

    @pytest.fixture
    def client(self, pipeline):
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert "timestamp" in data

    def test_detailed_health(self, client):
        response = client.get("/health/detailed")
        assert response.status_code == 200
        assert response.json()["services"]["text_generator"] == "healthy"

    def test_request_id_headers(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req_from_client"})
        assert response.headers["X-Request-ID"] == "req_from_client"
        assert "X-Process-Time" in response.headers

        generated = client.get("/health").headers["X-Request-ID"]
        assert generated.startswith("req_")

    def test_analyze(self, client):
        response = client.post("/api/analyze", json={"url": GUIDE, "query": "python testing"})
        assert response.status_code == 200
        data = response.json()
        assert set(data["geo_analysis"]["scores"]) == {"overall", "extractability", "readability", "citability"}
        assert data["request"]["url"] == GUIDE
        assert data["meta"]["features_used"][0] == "pattern-analysis"

    def test_analyze_missing_query(self, client):
        response = client.post("/api/analyze", json={"url": GUIDE})
        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert "query" in data["error"]

    def test_analyze_blank_query(self, client):
        response = client.post("/api/analyze", json={"url": GUIDE, "query": "   "})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_analyze_read_failure(self, client):
        response = client.post("/api/analyze", json={"url": "https://gone.example.com", "query": "python"})
        assert response.status_code == 502
        data = response.json()
        assert data["error_code"] == "READ_FAILURE"
        assert data["request_id"] == response.headers["X-Request-ID"]

    def test_analyze_pipeline_error(self, client, pipeline, monkeypatch):
        def broken_merge(*args, **kwargs):
            raise RuntimeError("merge broke")

        monkeypatch.setattr(pipeline.merger, "merge", broken_merge)
        response = client.post("/api/analyze", json={"url": GUIDE, "query": "python"})
        assert response.status_code == 500
        assert response.json()["error_code"] == "PIPELINE_ERROR"

    def test_analyze_malformed_reader_payload(self, test_settings, fake_generator):
        reader = JinaContentReader(config=test_settings)
        reader.session = FakeSession(FakeResponse(payload={"data": "plain string"}))
        pipeline = GeoAnalysisPipeline(config=test_settings, generator=fake_generator, reader=reader)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        try:
            response = TestClient(app).post("/api/analyze", json={"url": GUIDE, "query": "python"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 502
        assert response.json()["error_code"] == "READ_FAILURE"

    def test_analyze_text(self, client):
        response = client.post("/api/analyze-text", json={"content": SAMPLE_CONTENT, "query": "python testing"})
        assert response.status_code == 200
        data = response.json()
        assert data["content"]["url"] == "text://optimized-content"
        assert "text-input" in data["meta"]["features_used"]

    def test_analyze_text_too_large(self, client):
        response = client.post("/api/analyze-text", json={"content": "x" * 6000, "query": "python"})
        assert response.status_code == 413
        assert response.json()["error_code"] == "CONTENT_TOO_LARGE"

    def test_compare(self, client):
        response = client.post("/api/compare", json={"urls": [GUIDE, SHORT], "query": "python testing"})
        assert response.status_code == 200
        data = response.json()
        assert data["comparison"]["winner"]["document_ref"] == GUIDE
        assert data["url_count"] == 2

    def test_compare_single_url(self, client):
        response = client.post("/api/compare", json={"urls": [GUIDE], "query": "python"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "COMPARISON_INPUT_ERROR"

    def test_compare_all_failed(self, client):
        response = client.post(
            "/api/compare",
            json={"urls": ["https://gone.example.com", "https://also-gone.example.com"], "query": "python"}
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "INSUFFICIENT_ANALYSES"

    def test_compare_bad_output_format(self, client):
        response = client.post(
            "/api/compare",
            json={"urls": [GUIDE, SHORT], "query": "python", "output_format": "verbose"}
        )
        assert response.status_code == 400

    def test_validate_rewrite(self, client):
        response = client.post("/api/validate-rewrite", json={
            "original_url": SHORT,
            "optimized_content": SAMPLE_CONTENT,
            "target_query": "python testing",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["before"]["url"] == SHORT
        assert "changes" in data["delta"]

    def test_validate_rewrite_read_failure(self, client):
        response = client.post("/api/validate-rewrite", json={
            "original_url": "https://gone.example.com",
            "optimized_content": SAMPLE_CONTENT,
            "target_query": "python testing",
        })
        assert response.status_code == 502
        assert response.json()["error_code"] == "READ_FAILURE"
