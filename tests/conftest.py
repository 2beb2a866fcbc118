"""Pytest fixtures shared by the API and service tests."""

import json
import os

# Must be set before projectv is imported
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ["LOGGING_FILE"] = ""

import aiohttp
import pytest
from fastapi.testclient import TestClient

from projectv.main import app, rate_limiter
from projectv.services import (
    SummaryService,
    TranscribePipeline,
    TranscriptionService,
    get_pipeline,
)

UPSTREAM = "http://upstream.test/v1"


class FakeResponse:
    """Enough of aiohttp.ClientResponse for the upstream clients."""

    def __init__(self, status=200, body=""):
        self.status = status
        self._body = body if isinstance(body, str) else json.dumps(body)

    async def text(self):
        return self._body

    async def json(self, content_type="application/json"):
        return json.loads(self._body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeHttp:
    """Scripted upstream: URL suffix -> FakeResponse or exception to raise."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, suffix, status=200, body="", raises=None):
        self.routes[suffix] = raises if raises is not None else FakeResponse(status, body)

    def calls_to(self, suffix):
        return [call for call in self.calls if call[0].endswith(suffix)]

    def session_class(self):
        fake = self

        class FakeSession:
            def __init__(self, *args, **kwargs):
                pass

            async def __aenter__(self):
                return self

            async def __aexit__(self, *exc):
                return False

            def post(self, url, **kwargs):
                fake.calls.append((url, kwargs))
                for suffix, outcome in fake.routes.items():
                    if url.endswith(suffix):
                        if isinstance(outcome, BaseException):
                            raise outcome
                        return outcome
                raise AssertionError(f"unexpected upstream call: {url}")

        return FakeSession


@pytest.fixture
def fake_http(monkeypatch):
    fake = FakeHttp()
    monkeypatch.setattr(aiohttp, "ClientSession", fake.session_class())
    return fake


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.limiter.reset()
    yield
    rate_limiter.limiter.reset()


@pytest.fixture
def pipeline():
    return TranscribePipeline(
        transcriber=TranscriptionService(api_key="test-key", api_base=UPSTREAM),
        summarizer=SummaryService(api_key="test-key", api_base=UPSTREAM),
    )


@pytest.fixture
def client(pipeline):
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def chat_reply(content):
    """Chat completion envelope carrying `content` as the message."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def audio_upload(data=b"RIFF....WAVEfmt ", content_type="audio/webm", field="audio"):
    return {field: ("recording.webm", data, content_type)}
