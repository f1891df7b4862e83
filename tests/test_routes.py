from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from newscast.main import app
from newscast.pipeline.animate import INSUFFICIENT_CREDITS_MESSAGE
from newscast.pipeline import routes
from newscast.pipeline.errors import InsufficientCreditsError, ValidationError
from newscast.pipeline.routes import get_service

from conftest import (
    PUBLIC_BASE,
    FakeMetadataStore,
    FakeVideoSynthesizer,
    Harness,
)

client = TestClient(app)


@pytest.fixture
def use_harness():
    """Route requests to a service built on in-memory fakes."""
    def _install(h: Harness) -> Harness:
        app.dependency_overrides[get_service] = lambda: h.service
        return h

    yield _install
    app.dependency_overrides.clear()


# --- Generate ---

def test_generate_happy_path(use_harness):
    h = use_harness(Harness())

    response = client.post("/api/generate", json={"businessData": "Sales up 20%, hired 5 engineers"})

    assert response.status_code == 200
    body = response.json()
    assert list(body) == ["videoUrl"]
    assert body["videoUrl"].startswith(f"{PUBLIC_BASE}/video-")
    assert body["videoUrl"].endswith(".mp4")
    assert h.calls == ["script", "speech", "video", "download", "upload", "metadata"]


@pytest.mark.parametrize("payload", [{}, {"businessData": ""}, {"businessData": "   "}, {"businessData": None}])
def test_generate_rejects_missing_business_data(use_harness, payload):
    h = use_harness(Harness())

    response = client.post("/api/generate", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Business data is required"}
    assert h.calls == []


@pytest.mark.parametrize("body", ["not json", "[1, 2]", '{"businessData": 42}'])
def test_generate_rejects_malformed_body(use_harness, body):
    h = use_harness(Harness())

    response = client.post(
        "/api/generate", content=body, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert "error" in response.json()
    assert h.calls == []


def test_generate_billing_failure(use_harness):
    h = use_harness(
        Harness(video=FakeVideoSynthesizer([], error=InsufficientCreditsError(INSUFFICIENT_CREDITS_MESSAGE)))
    )

    response = client.post("/api/generate", json={"businessData": "Sales up 20%, hired 5 engineers"})

    assert response.status_code == 500
    error = response.json()["error"]
    assert "credits" in error and "billing" in error
    assert h.blobs.objects == {}
    assert h.metadata.rows == []


def test_generate_metadata_failure_keeps_blob(use_harness):
    h = use_harness(Harness(metadata=FakeMetadataStore([], fail_with="permission denied for table videos")))

    response = client.post("/api/generate", json={"businessData": "Sales up 20%, hired 5 engineers"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save to database: permission denied for table videos"}
    assert len(h.blobs.objects) == 1


# --- Metrics / health ---

def test_metrics_count_outcomes(use_harness):
    use_harness(Harness())
    client.post("/api/generate", json={"businessData": "Sales up"})
    use_harness(Harness(metadata=FakeMetadataStore([], fail_with="boom")))
    client.post("/api/generate", json={"businessData": "Sales up"})

    snapshot = client.get("/metrics").json()

    assert snapshot["counters"]["requests.generate"] == 2
    assert snapshot["counters"]["generate.completed"] == 1
    assert snapshot["counters"]["generate.failed"] == 1
    assert snapshot["counters"]["errors.MetadataPersistError"] == 1
    assert snapshot["latency"]["generate"]["count"] == 2
    assert snapshot["recent_errors"][0]["stage"] == "METADATA_SAVED"


def test_health_reports_configuration(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("REPLICATE_API_TOKEN", raising=False)

    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["openai_key_set"] is True
    assert body["replicate_token_set"] is False


# --- Startup without credentials ---

@pytest.fixture
def unconfigured_service(monkeypatch):
    """Let get_service build the real service from an environment with no keys."""
    for key in ("OPENAI_API_KEY", "REPLICATE_API_TOKEN", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("newscast.config.load_dotenv", lambda *args, **kwargs: False)
    monkeypatch.setattr(routes, "_service", None)


def test_app_starts_without_openai_key(unconfigured_service):
    with TestClient(app) as started:
        response = started.get("/health")

    assert response.status_code == 200
    assert response.json()["openai_key_set"] is False


def test_generate_without_openai_key_returns_error_envelope(unconfigured_service):
    with TestClient(app) as started:
        response = started.post("/api/generate", json={"businessData": "Sales up 20%"})

    assert response.status_code == 500
    assert list(response.json()) == ["error"]
    assert response.json()["error"].startswith("Script generation failed")


def test_generate_status_comes_from_error_class(use_harness):
    h = use_harness(Harness())
    h.service.run = AsyncMock(side_effect=ValidationError("Business data is required"))

    response = client.post("/api/generate", json={"businessData": "Sales up"})

    assert response.status_code == ValidationError.http_status
    assert response.json() == {"error": "Business data is required"}
