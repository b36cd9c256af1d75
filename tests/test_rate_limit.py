from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.core.rate_limit import RateLimitMiddleware


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def build_client(limit: int, clock: FakeClock, trust_forwarded_for: bool = False) -> TestClient:
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware,
        limit=limit,
        window_seconds=60,
        clock=clock,
        trust_forwarded_for=trust_forwarded_for,
    )

    @app.get("/api/v1/things")
    def things() -> dict:
        return {"ok": True}

    @app.get("/api/v1/health")
    def health() -> dict:
        return {"status": "ok"}

    return TestClient(app)


def test_requests_over_the_limit_are_rejected():
    clock = FakeClock()
    client = build_client(limit=2, clock=clock)

    first = client.get("/api/v1/things")
    assert first.status_code == 200
    assert first.headers["x-ratelimit-remaining"] == "1"
    assert client.get("/api/v1/things").status_code == 200

    blocked = client.get("/api/v1/things")
    assert blocked.status_code == 429
    assert blocked.json() == {
        "error": {"code": "rate_limited", "message": "Too many requests, try again later", "details": None}
    }
    assert int(blocked.headers["retry-after"]) > 0


def test_window_slides():
    clock = FakeClock()
    client = build_client(limit=1, clock=clock)
    assert client.get("/api/v1/things").status_code == 200
    assert client.get("/api/v1/things").status_code == 429
    clock.now += 61
    assert client.get("/api/v1/things").status_code == 200


def test_limits_are_per_forwarded_client_behind_trusted_proxy():
    clock = FakeClock()
    client = build_client(limit=1, clock=clock, trust_forwarded_for=True)
    assert client.get("/api/v1/things", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
    assert client.get("/api/v1/things", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200
    assert client.get("/api/v1/things", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429


def test_health_and_disabled_limits_are_not_counted():
    clock = FakeClock()
    client = build_client(limit=1, clock=clock)
    for _ in range(3):
        assert client.get("/api/v1/health").status_code == 200

    unlimited = build_client(limit=0, clock=clock)
    for _ in range(3):
        assert unlimited.get("/api/v1/things").status_code == 200


def test_forwarded_for_is_ignored_without_trusted_proxy():
    clock = FakeClock()
    client = build_client(limit=1, clock=clock)
    assert client.get("/api/v1/things", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
    assert client.get("/api/v1/things", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 429


def test_idle_clients_are_dropped():
    clock = FakeClock()
    middleware = RateLimitMiddleware(FastAPI(), limit=5, window_seconds=60, clock=clock)
    for index in range(3):
        middleware._check(f"10.0.0.{index}")
    assert len(middleware._hits) == 3

    clock.now += 61
    allowed, remaining, _ = middleware._check("10.0.0.9")
    assert allowed
    assert remaining == 4
    assert list(middleware._hits) == ["10.0.0.9"]
