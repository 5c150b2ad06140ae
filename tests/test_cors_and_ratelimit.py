import pytest
from httpx import ASGITransport, AsyncClient

from app.main import create_app
from app.middleware import rate_limit


@pytest.fixture(autouse=True)
def _fresh_rate_limit_storage():
    rate_limit._storage.reset()
    yield
    rate_limit._storage.reset()


@pytest.mark.asyncio
async def test_cors_allowed_origin(monkeypatch):
    monkeypatch.setenv("ALLOW_ORIGINS", "http://localhost:8081,https://example.com")
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/health", headers={"Origin": "http://localhost:8081"})
        # When allowed, Starlette adds ACAO echoing the origin
        assert r.status_code == 200
        assert r.headers.get("access-control-allow-origin") == "http://localhost:8081"


@pytest.mark.asyncio
async def test_cors_disabled_without_allow_origins(monkeypatch):
    monkeypatch.delenv("ALLOW_ORIGINS", raising=False)
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/health", headers={"Origin": "http://localhost:8081"})
        assert r.status_code == 200
        assert r.headers.get("access-control-allow-origin") is None


@pytest.mark.asyncio
async def test_cors_disallowed_origin(monkeypatch):
    monkeypatch.setenv("ALLOW_ORIGINS", "https://example.com")
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/health", headers={"Origin": "http://evil.com"})
        # Not allowed: middleware should not include ACAO header
        assert r.status_code == 200
        assert r.headers.get("access-control-allow-origin") is None


@pytest.mark.asyncio
async def test_rate_limit_get_exceeded(monkeypatch):
    # Ensure limiter is enabled during tests
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "1")
    monkeypatch.setenv("ALLOW_ORIGINS", "")

    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        # GET: 60/minute, the 61st must be 429
        for _ in range(60):
            r = await ac.get("/health")
            assert r.status_code == 200
        r = await ac.get("/health")
        assert r.status_code == 429
        body = r.json()
        assert body["error"]["code"] == "rate_limited"
        assert body["error"]["detail"]["limit"] == "60/minute"


@pytest.mark.asyncio
async def test_rate_limit_is_stricter_for_auth_posts(backend_env, monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "1")

    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        # Empty bodies fail validation (422) without reaching the backend; they still count.
        for _ in range(10):
            r = await ac.post("/auth/sign-in", json={})
            assert r.status_code == 422
        r = await ac.post("/auth/sign-in", json={})
        assert r.status_code == 429
        assert r.json()["error"]["detail"]["limit"] == "10/minute"

        # Other buckets are unaffected
        assert (await ac.get("/health")).status_code == 200


def test_rate_limit_disabled_under_testing(monkeypatch):
    monkeypatch.delenv("RATE_LIMIT_ENABLED", raising=False)
    monkeypatch.setenv("TESTING", "1")
    assert rate_limit._enabled() is False


@pytest.mark.parametrize(
    "method, path, expected",
    [
        ("GET", "/points/nearby", "60/minute"),
        ("HEAD", "/health", "60/minute"),
        ("POST", "/auth/sign-up", "10/minute"),
        ("POST", "/other", "30/minute"),
        ("OPTIONS", "/points/nearby", None),
    ],
)
def test_limit_selection(method, path, expected):
    assert rate_limit._limit_for(method, path) == expected
