"""
Tests for the error envelope of unexpected failures
"""
import pytest
from httpx import ASGITransport, AsyncClient

from pdfnotebook.core.config import Settings
from pdfnotebook.dependencies import build_services
from pdfnotebook.main import create_app

from tests.conftest import FakeEmbedder, FakeGenerator, FakeVerifier


async def _get_failing_route(settings, database):
    services = build_services(
        settings,
        database=database,
        embedder=FakeEmbedder(),
        generator=FakeGenerator(),
        verifier=FakeVerifier(),
    )
    app = create_app(services)

    @app.get("/explode")
    async def explode():
        raise RuntimeError("unexpected failure")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get("/explode")


def test_environment_defaults_to_production(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    settings = Settings()
    assert settings.ENVIRONMENT == "production"
    assert not settings.is_development


@pytest.mark.asyncio
async def test_unexpected_error_hides_traceback_by_default(monkeypatch, settings, database):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    defaults = Settings(DB_URL=settings.DB_URL, STORAGE_PATH=settings.STORAGE_PATH)

    response = await _get_failing_route(defaults, database)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error occurred"}


@pytest.mark.asyncio
async def test_development_adds_traceback(settings, database):
    development = Settings(DB_URL=settings.DB_URL, STORAGE_PATH=settings.STORAGE_PATH, ENVIRONMENT="development")

    response = await _get_failing_route(development, database)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal server error occurred"
    assert any("unexpected failure" in line for line in body["traceback"])
