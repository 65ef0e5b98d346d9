from fastapi import FastAPI
from fastapi.testclient import TestClient

from lupora.middleware.security import RateLimitMiddleware
from lupora.utils.rate_limit import FixedWindowRateLimiter


def make_app(enabled=True):
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware,
        auth_limit=2,
        auth_window_seconds=900,
        api_limit=3,
        api_window_seconds=60,
        enabled=enabled,
    )

    @app.post("/api/auth/login")
    def login():
        return {"ok": True}

    @app.get("/api/products")
    def products():
        return []

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


def test_limiter_allows_up_to_limit_per_window():
    limiter = FixedWindowRateLimiter(3, 60)

    results = [limiter.hit("api:1.2.3.4", now=100.0 + i) for i in range(4)]

    assert results[:3] == [(True, 0)] * 3
    allowed, retry_after = results[3]
    assert not allowed
    assert retry_after == 58


def test_limiter_resets_on_next_window():
    limiter = FixedWindowRateLimiter(1, 60)

    assert limiter.hit("k", now=0.0)[0]
    assert not limiter.hit("k", now=59.0)[0]
    assert limiter.hit("k", now=60.0)[0]


def test_limiter_counts_keys_separately():
    limiter = FixedWindowRateLimiter(1, 60)

    assert limiter.hit("a", now=0.0)[0]
    assert limiter.hit("b", now=0.0)[0]
    assert not limiter.hit("a", now=1.0)[0]


def test_sensitive_routes_get_strict_budget():
    client = TestClient(make_app())

    assert client.post("/api/auth/login").status_code == 200
    assert client.post("/api/auth/login").status_code == 200
    response = client.post("/api/auth/login")

    assert response.status_code == 429
    assert "message" in response.json()
    assert int(response.headers["Retry-After"]) > 0

    # The general budget is separate
    assert client.get("/api/products").status_code == 200


def test_general_routes_limited():
    client = TestClient(make_app())

    statuses = [client.get("/api/products").status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]


def test_non_api_paths_and_preflight_are_not_counted():
    client = TestClient(make_app())

    for _ in range(5):
        assert client.get("/health").status_code == 200
        client.options("/api/products")

    assert client.get("/api/products").status_code == 200


def test_disabled_limiter_lets_everything_through():
    client = TestClient(make_app(enabled=False))

    assert all(client.post("/api/auth/login").status_code == 200 for _ in range(5))
