"""Tests for the application shell: info route, limiter, headers, error envelopes."""

import pytest
from fastapi.testclient import TestClient

from projectv.main import SECURITY_HEADERS, app, main


def test_root_info(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {
        "status": "online",
        "service": "Project V Backend",
        "version": "1.0.0",
        "powered_by": "GPT-4o Transcribe",
        "endpoints": {
            "health": "GET /",
            "transcribe": "POST /api/transcribe",
        },
    }


def test_eleventh_request_in_window_is_rejected(client):
    responses = [client.get("/") for _ in range(11)]

    assert [r.status_code for r in responses[:10]] == [200] * 10
    assert responses[9].headers["RateLimit-Remaining"] == "0"

    rejected = responses[10]
    assert rejected.status_code == 429
    assert rejected.json() == {
        "error": "Muitas requisições. Tente novamente em 1 minuto.",
        "retryAfter": 60,
    }
    assert rejected.headers["Retry-After"] == "60"


def test_limit_applies_before_upload_parsing(client, fake_http):
    for _ in range(10):
        client.get("/")

    response = client.post("/api/transcribe", files={"audio": ("a.webm", b"x", "audio/webm")})

    assert response.status_code == 429
    assert fake_http.calls == []


def test_standard_rate_limit_headers_only(client):
    response = client.get("/")

    assert response.headers["RateLimit-Limit"] == "10"
    assert response.headers["RateLimit-Remaining"] == "9"
    assert 0 < int(response.headers["RateLimit-Reset"]) <= 60
    assert "X-RateLimit-Limit" not in response.headers


def test_security_headers(client):
    response = client.get("/")

    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value
    assert response.headers["Cross-Origin-Resource-Policy"] == "cross-origin"


def test_cors_allows_any_origin(client):
    response = client.get("/", headers={"Origin": "https://app.example.com"})

    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_preflight_restricts_methods_and_headers(client):
    response = client.options(
        "/api/transcribe",
        headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert response.status_code == 200
    assert set(response.headers["access-control-allow-methods"].split(", ")) == {"GET", "POST"}

    rejected = client.options(
        "/api/transcribe",
        headers={"Origin": "https://app.example.com", "Access-Control-Request-Method": "DELETE"},
    )
    assert rejected.status_code == 400


def test_size_guard_rejection_is_readable_cross_origin(client, fake_http):
    response = client.post(
        "/api/transcribe",
        files={"audio": ("a.webm", b"\0" * (26 * 1024 * 1024), "audio/webm")},
        headers={"Origin": "https://app.example.com"},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "FILE_TOO_LARGE"
    assert response.headers["access-control-allow-origin"] == "*"
    assert fake_http.calls == []


def test_rate_limit_rejection_is_readable_cross_origin(client):
    for _ in range(10):
        client.get("/")

    response = client.get("/", headers={"Origin": "https://app.example.com"})

    assert response.status_code == 429
    assert response.headers["access-control-allow-origin"] == "*"


def test_unknown_route_is_json(client):
    response = client.get("/nope")

    assert response.status_code == 404
    assert response.json()["code"] == "HTTP_404"


def test_wrong_method_is_json(client):
    response = client.get("/api/transcribe")

    assert response.status_code == 405
    assert response.json()["code"] == "HTTP_405"


def test_main_exits_without_api_key(monkeypatch, capsys):
    monkeypatch.setenv("OPENAI_API_KEY", "")

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 1
    assert "OPENAI_API_KEY" in capsys.readouterr().err


def test_main_runs_uvicorn_on_configured_port(monkeypatch):
    import uvicorn

    calls = {}
    monkeypatch.setenv("PORT", "8123")
    monkeypatch.setattr(uvicorn, "run", lambda app_, **kwargs: calls.update(app=app_, **kwargs))

    main()

    assert calls == {"app": app, "host": "0.0.0.0", "port": 8123}


def test_startup_fails_without_api_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "")

    with pytest.raises(RuntimeError):
        with TestClient(app):
            pass


def test_startup_with_api_key_serves_requests():
    with TestClient(app) as started:
        assert started.get("/").status_code == 200
