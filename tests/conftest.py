import json

import pytest
import requests
from fastapi.testclient import TestClient

from tutor.config import Settings


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.closed = False

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def iter_content(self, chunk_size=1):
        if isinstance(self._payload, Exception):
            body = b"<html>Bad Gateway</html>"
        else:
            body = json.dumps(self._payload).encode("utf-8")
        for start in range(0, len(body), chunk_size):
            yield body[start : start + chunk_size]

    def close(self):
        self.closed = True

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


@pytest.fixture
def no_llm(monkeypatch):
    """Force the heuristic path regardless of the developer's environment."""
    for name in ("LLM_API_KEY", "GROQ_API_KEY", "OCR_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def client(no_llm):
    from main import app

    return TestClient(app)


@pytest.fixture
def llm_settings():
    return Settings(llm_api_key="test-key", llm_base_url="http://llm.test/v1")


@pytest.fixture
def plain_settings():
    return Settings()


@pytest.fixture
def fake_response():
    return FakeResponse
