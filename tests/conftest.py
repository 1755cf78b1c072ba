"""
Global test fixtures for dbconnect.

This module provides shared fixtures for all tests including:
- Mock MongoDB (mongomock-motor)
- Mock Redis (fakeredis)
- Token factories
- A FastAPI TestClient wired to the mocks
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

TENANT = "tenant_a"
WEBSITE_ORIGIN = "http://localhost:3000"


# =============================================================================
# MongoDB Fixtures (mongomock-motor)
# =============================================================================

@pytest.fixture
def mock_async_mongo_client():
    """
    Create an async mock MongoDB client using mongomock-motor.

    One client backs both the catalog database and the tenant databases.
    """
    from mongomock_motor import AsyncMongoMockClient

    client = AsyncMongoMockClient()
    yield client
    client.close()


@pytest.fixture
def mock_catalog_db(mock_async_mongo_client):
    """Provide mock catalog database."""
    return mock_async_mongo_client["dbconnect"]


@pytest.fixture
def mock_tenant_db(mock_async_mongo_client):
    """Provide mock tenant database."""
    return mock_async_mongo_client[TENANT]


@pytest_asyncio.fixture
async def catalog(mock_catalog_db):
    """SchemaCatalog over the mock catalog database, indexes created."""
    from dbconnect.services.schema_catalog import SchemaCatalog

    service = SchemaCatalog(mock_catalog_db)
    await service.ensure_indexes()
    return service


# =============================================================================
# Redis Fixtures (fakeredis)
# =============================================================================

@pytest_asyncio.fixture
async def mock_async_redis():
    """
    Create an async mock Redis client using fakeredis.
    """
    import fakeredis.aioredis

    redis_client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield redis_client
    await redis_client.flushall()
    await redis_client.aclose()


# =============================================================================
# Token Fixtures
# =============================================================================

@pytest.fixture
def api_key_token() -> str:
    """Signed API-key auth token."""
    from dbconnect.core.security import create_access_token

    return create_access_token("507f1f77bcf86cd799439011", extra_claims={"username": "alice"})


@pytest.fixture
def website_token() -> str:
    """Signed website session auth token."""
    from dbconnect.core.security import create_access_token

    return create_access_token(
        "507f1f77bcf86cd799439011",
        is_website_key=True,
        extra_claims={"username": "alice"},
    )


@pytest.fixture
def expired_token() -> str:
    from dbconnect.core.security import create_access_token

    return create_access_token("507f1f77bcf86cd799439011", expires_delta=timedelta(seconds=-10))


@pytest.fixture
def make_action_token():
    """Factory for action tokens issued ``age_seconds`` ago."""
    from dbconnect.core.security import create_action_token

    def _make(age_seconds: int = 0, **claims) -> str:
        issued_at = datetime.now(timezone.utc) - timedelta(seconds=age_seconds)
        return create_action_token(claims, issued_at=issued_at)

    return _make


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================

@pytest.fixture
def app(mock_async_mongo_client, mock_catalog_db):
    """
    FastAPI app with catalog, tenant databases and access gate overridden.

    The replay guard is disabled here; it is covered by the gate tests.
    """
    from dbconnect.database.tenant_registry import validate_tenant_key
    from dbconnect.dependencies.auth import get_access_gate
    from dbconnect.dependencies.tenant import (
        TenantName,
        get_schema_catalog,
        get_tenant_database,
    )
    from dbconnect.main import app
    from dbconnect.services.access_gate import AccessGate
    from dbconnect.services.schema_catalog import SchemaCatalog

    async def _tenant_database(db: TenantName = None):
        yield mock_async_mongo_client[validate_tenant_key(db)]

    async def _catalog():
        return SchemaCatalog(mock_catalog_db)

    async def _gate():
        return AccessGate()

    app.dependency_overrides[get_tenant_database] = _tenant_database
    app.dependency_overrides[get_schema_catalog] = _catalog
    app.dependency_overrides[get_access_gate] = _gate
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Generator:
    """
    Create a TestClient for the FastAPI app.

    The lifespan is not entered, so no real database is contacted.
    """
    yield TestClient(app)


@pytest.fixture
def auth_headers(api_key_token) -> dict:
    """Headers carrying an API-key auth token."""
    return {"x-auth-token": api_key_token}
