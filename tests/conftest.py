"""Pytest configuration and fixtures"""

from datetime import timedelta
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from tokengate.api.rate_limit import limiter
from tokengate.core.access import AccessValidator, InMemoryTokenStore
from tokengate.core.config import Settings
from tokengate.core.models import TokenRecord, utc_now
from tokengate.infrastructure.database import DatabaseConnection, SqlTokenStore
from tokengate.main import create_app

ADMIN_KEY = "test-admin-key"


def build_record(**overrides) -> TokenRecord:
    """Build a valid, active token record with sensible defaults"""
    values = {
        "client_name": "Acme Corp",
        "client_email": "ops@acme.test",
        "allowed_pages": ["report"],
        "allowed_domains": [],
        "expires_at": utc_now() + timedelta(days=30),
        "is_active": True,
    }
    values.update(overrides)
    return TokenRecord(**values)


@pytest.fixture
def memory_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def validator(memory_store: InMemoryTokenStore) -> AccessValidator:
    return AccessValidator(memory_store)


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[DatabaseConnection, None]:
    """In-memory SQLite database with the schema created"""
    db = DatabaseConnection("sqlite:///:memory:")
    await db.connect()
    await db.create_schema()
    yield db
    await db.disconnect()


@pytest_asyncio.fixture
async def sql_store(database: DatabaseConnection) -> SqlTokenStore:
    return SqlTokenStore(database)


@pytest.fixture
def content_root(tmp_path: Path) -> Path:
    """Content tree covering every lookup convention"""
    (tmp_path / "report").mkdir()
    (tmp_path / "report" / "report.html").write_text("<h1>Quarterly report</h1>")

    (tmp_path / "dash").mkdir()
    (tmp_path / "dash" / "index.html").write_text("<h1>Dashboard</h1>")

    (tmp_path / "protected-content").mkdir()
    (tmp_path / "protected-content" / "legacy.html").write_text("<h1>Legacy page</h1>")

    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "index.html").write_text("ignored")

    (tmp_path / "empty").mkdir()
    return tmp_path


@pytest.fixture
def test_settings(content_root: Path) -> Settings:
    return Settings(
        _env_file=None,
        environment="development",
        admin_api_key=ADMIN_KEY,
        content_root=content_root,
        external_projects={
            "partner": "https://partner.example.com/app",
            "broken": "",
        },
        database_url="sqlite:///:memory:",
    )


@pytest.fixture
def app(test_settings: Settings, memory_store: InMemoryTokenStore):
    return create_app(test_settings, store=memory_store)


@pytest.fixture
def client(app):
    """Create test client"""
    limiter.reset()
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict:
    return {"Authorization": f"Bearer {ADMIN_KEY}"}


@pytest.fixture
def issue_token(client: TestClient, admin_headers: dict):
    """Create a token through the admin API and return its JSON record"""

    def _issue(**payload) -> dict:
        body = {"client_name": "Acme Corp", "allowed_pages": ["report"]}
        body.update(payload)
        response = client.post("/api/tokens", json=body, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]["token"]

    return _issue
