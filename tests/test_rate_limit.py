# tests/test_rate_limit.py
import pytest
from fastapi import HTTPException
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.platform.config import settings
from app.platform.utils.rate_limit import rate_limit, reset_rate_limits


@pytest.fixture
def tight_limit(monkeypatch):
    """Two signups per minute per client."""
    monkeypatch.setattr(settings, "SIGNUP_RATE_LIMIT_PER_MINUTE", 2)
    reset_rate_limits()
    yield 2
    reset_rate_limits()


@pytest.mark.asyncio
async def test_signup_rate_limit(tight_limit):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        # Requests under limit are processed (and rejected as incomplete)
        for _ in range(tight_limit):
            res = await ac.post("/api/signup", json={})
            assert res.status_code == 400

        # Next request should be blocked
        res = await ac.post("/api/signup", json={})
        assert res.status_code == 429
        assert "Retry-After" in res.headers
        assert res.json()["message"] == "Too many requests. Please slow down."


def test_rate_limit_keys_are_independent():
    reset_rate_limits()
    rate_limit("signup:10.0.0.1", max_requests=1)
    rate_limit("signup:10.0.0.2", max_requests=1)

    with pytest.raises(HTTPException) as exc_info:
        rate_limit("signup:10.0.0.1", max_requests=1)

    assert exc_info.value.status_code == 429
    assert int(exc_info.value.headers["Retry-After"]) >= 1
    reset_rate_limits()
