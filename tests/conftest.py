"""
Test configuration and fixtures for the PeerPlates Waitlist API.

Tests run against a throwaway SQLite database unless TEST_DATABASE_URL points
somewhere else. Outbound email is always disabled.
"""

import asyncio
import os
import tempfile
import uuid
from typing import Generator
from unittest.mock import patch

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient
from sqlalchemy import delete

load_dotenv()

test_db_url = os.getenv("TEST_DATABASE_URL")
if test_db_url:
    if "postgresql://" in test_db_url and "asyncpg" not in test_db_url:
        test_db_url = test_db_url.replace("postgresql://", "postgresql+asyncpg://")
    os.environ["DATABASE_URL"] = test_db_url
else:
    test_db_path = tempfile.mktemp(suffix=".db")
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_path}"

os.environ["ADMIN_SECRET"] = "test-admin-secret"
os.environ["SIGNUP_RATE_LIMIT_PER_MINUTE"] = "1000"
os.environ["SITE_URL"] = "https://peerplates.co.uk"
os.environ["EMAIL_RELAY_URL"] = ""
os.environ["EMAIL_RELAY_API_KEY"] = ""
os.environ["MAIL_HOST"] = ""
os.environ["MAIL_USERNAME"] = ""

from app.features.waitlist.models.waitlist import WaitlistEntry, WaitlistRole  # noqa: E402
from app.platform.db.base import Base  # noqa: E402
from app.platform.db.session import SessionLocal, engine  # noqa: E402
from app.platform.utils.rate_limit import reset_rate_limits  # noqa: E402


async def _create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _clear_tables():
    async with engine.begin() as conn:
        await conn.execute(delete(WaitlistEntry))


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application with its tables in place."""
    from app.main import app as fastapi_app

    asyncio.run(_create_tables())
    return fastapi_app


@pytest.fixture(autouse=True)
def clean_state(test_app):
    """Every test starts with an empty waitlist and fresh rate limit windows."""
    asyncio.run(_clear_tables())
    reset_rate_limits()
    yield


@pytest.fixture
def mock_send_email():
    with patch("app.features.waitlist.routes.waitlist.send_waitlist_email") as mocked:
        yield mocked


@pytest.fixture(scope="function")
def client(test_app, mock_send_email) -> Generator[TestClient, None, None]:
    """
    Create a test client for making HTTP requests.
    Welcome emails queued by signups are captured by `mock_send_email`.
    """
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    from app.platform.config import settings

    return {"X-Admin-Secret": settings.ADMIN_SECRET}


def _consumer_signup(**overrides) -> dict:
    payload = {
        "role": "consumer",
        "fullName": "Amara Okafor",
        "email": "amara.okafor@gmail.com",
        "phone": "07700 900123",
        "accepted_privacy": True,
        "marketing_consent": False,
        "hp": "",
        "answers": {
            "is_student": "Yes",
            "university": "King's College London",
            "top_cuisines": ["African", "Caribbean", "Thai"],
            "dietary_preferences": ["Halal"],
        },
    }
    payload.update(overrides)
    return payload


def _vendor_signup(**overrides) -> dict:
    payload = {
        "role": "vendor",
        "fullName": "Tunde Bakare",
        "email": "tunde.kitchen@gmail.com",
        "phone": "07700 900456",
        "accepted_privacy": True,
        "hp": "",
        "answers": {
            "postcode_area": "SE15",
            "currently_sell": "Yes",
            "portions_per_week": "21–40",
            "has_food_ig": "Yes",
            "ig_handle": "@tundeskitchen",
            "compliance_readiness": [
                "Registered with your Local Council",
                "Level 2 Hygiene Certificate",
                "Food Safety Plan",
            ],
            "sell_categories": ["African", "Pastries"],
        },
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def consumer_signup():
    return _consumer_signup


@pytest.fixture
def vendor_signup():
    return _vendor_signup


@pytest.fixture
def signup(client):
    """Posts a signup and returns the response data, failing loudly on errors."""

    def _signup(payload: dict) -> dict:
        response = client.post("/api/signup", json=payload)
        assert response.status_code == 201, response.json()
        return response.json()["data"]

    return _signup


@pytest.fixture
def make_entry(test_app):
    """Inserts a waitlist row directly, for tests that need control over timestamps."""

    def _make(**fields) -> WaitlistEntry:
        token = uuid.uuid4().hex.upper()
        values = {
            "role": WaitlistRole.CONSUMER,
            "full_name": "Seeded Person",
            "email": f"seed.{token[:12].lower()}@gmail.com",
            "referral_code": token[:8],
            "queue_code": token[8:18],
            "accepted_privacy": True,
            "answers": {},
        }
        values.update(fields)

        async def _insert():
            async with SessionLocal() as session:
                entry = WaitlistEntry(**values)
                session.add(entry)
                await session.commit()
                await session.refresh(entry)
                return entry

        return asyncio.run(_insert())

    return _make
