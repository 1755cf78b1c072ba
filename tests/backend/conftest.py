"""
Backend-specific test fixtures and configuration.

These fixtures extend the global fixtures with service instances and a fake
Motor client factory for exercising the tenant connection registry.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

TENANT = "tenant_a"


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def collection_service(mock_tenant_db, catalog):
    from dbconnect.services.collection_service import CollectionService

    return CollectionService(mock_tenant_db, catalog, db_name=TENANT)


@pytest.fixture
def document_service(mock_tenant_db, catalog):
    from dbconnect.services.document_service import DocumentService

    return DocumentService(mock_tenant_db, catalog, db_name=TENANT)


@pytest.fixture
def user_fields():
    """Schema with one unique and one required field."""
    from dbconnect.models.schema import FieldSpec, FieldType

    return {
        "email": FieldSpec(type=FieldType.STRING, unique=True),
        "name": FieldSpec(type=FieldType.STRING, required=True),
        "age": FieldSpec(type=FieldType.NUMBER),
        "active": FieldSpec(type=FieldType.BOOLEAN),
        "tags": FieldSpec(type=FieldType.ARRAY),
    }


# =============================================================================
# Fake Motor Client
# =============================================================================

class FakeMotorClient:
    """Stands in for AsyncIOMotorClient; records calls, pings after a short delay."""

    def __init__(self, uri, ping_error=None, ping_delay=0.01, **kwargs):
        self.uri = uri
        self.kwargs = kwargs
        self.closed = False

        async def _ping(*args, **kw):
            await asyncio.sleep(ping_delay)
            if ping_error is not None:
                raise ping_error
            return {"ok": 1}

        self.admin = MagicMock()
        self.admin.command = AsyncMock(side_effect=_ping)

    def __getitem__(self, name):
        database = MagicMock()
        database.name = name
        return database

    def close(self):
        self.closed = True


@pytest.fixture
def fake_client_factory():
    """
    Factory recording every FakeMotorClient it creates.

    Set ``factory.ping_error`` to make subsequent connection attempts fail.
    """
    class Factory:
        def __init__(self):
            self.clients = []
            self.ping_error = None

        def __call__(self, uri, **kwargs):
            client = FakeMotorClient(uri, ping_error=self.ping_error, **kwargs)
            self.clients.append(client)
            return client

        def clients_for(self, key):
            return [c for c in self.clients if c.uri.split("?")[0].endswith(f"/{key}")]

    return Factory()


@pytest.fixture
def registry(fake_client_factory):
    from dbconnect.database.tenant_registry import ConnectionRegistry

    return ConnectionRegistry(
        base_uri="mongodb://cluster.example.net",
        params="retryWrites=true&w=majority",
        capacity=2,
        client_factory=fake_client_factory,
    )
