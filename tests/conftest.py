"""
Pytest configuration and shared fixtures.
"""

import pytest
from fastapi.testclient import TestClient

from api.config import APIConfig
from api.main import create_app
from storage.seed import seed_reference_data

TEST_SECRET_KEY = "test-secret-key-for-the-bookstore-api-suite"


@pytest.fixture
def test_config():
    """Configuration backed by a private in-memory database."""
    return APIConfig(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key=TEST_SECRET_KEY,
        access_token_expire_minutes=5,
        password_hash_rounds=4,
    )


@pytest.fixture
def app(test_config):
    """Create a fresh application per test."""
    return create_app(test_config)


@pytest.fixture
def client(app):
    """Create test client; entering it runs the lifespan and creates the schema."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seeded_client(client, app):
    """Test client whose database holds the default user types and order statuses."""

    async def seed(database):
        async with database.session() as session:
            await seed_reference_data(session)

    client.portal.call(seed, app.state.database)
    return client


@pytest.fixture
def auth_headers(app):
    """Bearer headers carrying a valid token."""
    token = app.state.token_manager.issue(1, "tester")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_book_payload():
    """Create sample book request body."""
    return {
        "title": "A Light in the Attic",
        "description": "Poems and drawings",
        "price": 19.99,
        "published_at": "2024-05-01T00:00:00",
        "stock": 7,
    }
