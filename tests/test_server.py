import pytest
from pydantic import ValidationError
from starlette.testclient import TestClient

from src.config import Settings
from src.server import create_app


@pytest.fixture
def upload_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # keep a developer's .env out of the way
    monkeypatch.setenv("IMAGE_UPLOAD_URL", "https://img.host/upload")
    monkeypatch.delenv("MCP_AUTH_TOKEN", raising=False)


class TestSettings:
    def test_missing_upload_url_is_fatal(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("IMAGE_UPLOAD_URL", raising=False)
        with pytest.raises(ValidationError):
            Settings()

    def test_rejects_non_http_upload_url(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("IMAGE_UPLOAD_URL", "ftp://img.host/upload")
        with pytest.raises(ValidationError):
            Settings()

    def test_defaults(self, upload_env):
        settings = Settings()
        assert settings.download_timeout == 15.0
        assert settings.upload_timeout == 30.0
        assert settings.max_redirects == 5
        assert settings.convert_command == "convert"
        assert settings.transport == "stdio"


class TestHealthEndpoint:
    def test_health_returns_ok(self, upload_env):
        client = TestClient(create_app())
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_auth_token_protects_mcp_endpoint(self, upload_env, monkeypatch):
        monkeypatch.setenv("MCP_AUTH_TOKEN", "secret123")
        client = TestClient(create_app())
        assert client.get("/health").status_code == 200
        assert client.post("/mcp", json={}).status_code == 401

    def test_lifespan_starts_and_stops(self, upload_env):
        with TestClient(create_app()) as client:
            assert client.get("/health").json() == {"status": "ok"}
