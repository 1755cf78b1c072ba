"""
Tests for the per-tenant connection registry.

These tests cover:
- Tenant key validation
- Lazy connect and connection reuse
- Single connection attempt under concurrent first opens
- Idle eviction that never closes a leased connection
- Connection failures
"""

import asyncio

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from dbconnect.core.errors import InvalidTenant, StoreConnectionError
from dbconnect.database.tenant_registry import ConnectionRegistry, validate_tenant_key


class TestValidateTenantKey:
    """Tests for validate_tenant_key."""

    def test_valid_key(self):
        assert validate_tenant_key("tenant_a-01") == "tenant_a-01"

    @pytest.mark.parametrize("key", [None, "", "a/b", "a.b", "a b", "a$b", 'a"b', "x" * 64])
    def test_invalid_key(self, key):
        with pytest.raises(InvalidTenant) as exc:
            validate_tenant_key(key)
        assert exc.value.status_code == 400


class TestConnectionRegistry:
    """Tests for ConnectionRegistry."""

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            ConnectionRegistry("mongodb://localhost", capacity=0)

    def test_build_uri(self, registry):
        assert registry.build_uri("tenant_a") == (
            "mongodb://cluster.example.net/tenant_a?retryWrites=true&w=majority"
        )

    @pytest.mark.asyncio
    async def test_open_connects_lazily_and_reuses(self, registry, fake_client_factory):
        assert fake_client_factory.clients == []

        async with registry.lease("tenant_a") as first:
            assert first.name == "tenant_a"
        async with registry.lease("tenant_a") as second:
            assert second is first

        assert len(fake_client_factory.clients) == 1
        client = fake_client_factory.clients[0]
        assert client.kwargs["serverSelectionTimeoutMS"] == 5000
        client.admin.command.assert_awaited_once_with("ping")

    @pytest.mark.asyncio
    async def test_concurrent_first_opens_share_one_attempt(self, registry, fake_client_factory):
        databases = await asyncio.gather(*(registry.open("tenant_a") for _ in range(10)))

        assert len(fake_client_factory.clients) == 1
        assert all(db is databases[0] for db in databases)
        assert registry.stats()["tenants"]["tenant_a"] == {"state": "ready", "leases": 10}

    @pytest.mark.asyncio
    async def test_lease_released_after_use(self, registry):
        async with registry.lease("tenant_a"):
            assert registry.stats()["tenants"]["tenant_a"]["leases"] == 1
        assert registry.stats()["tenants"]["tenant_a"]["leases"] == 0

    @pytest.mark.asyncio
    async def test_idle_lru_connection_evicted_over_capacity(self, registry, fake_client_factory):
        for key in ("tenant_a", "tenant_b", "tenant_c"):
            async with registry.lease(key):
                pass

        assert set(registry.stats()["tenants"]) == {"tenant_b", "tenant_c"}
        assert fake_client_factory.clients_for("tenant_a")[0].closed is True

    @pytest.mark.asyncio
    async def test_leased_connection_never_evicted(self, registry, fake_client_factory):
        await registry.open("tenant_a")
        async with registry.lease("tenant_b"):
            pass
        async with registry.lease("tenant_c"):
            pass

        tenants = registry.stats()["tenants"]
        assert "tenant_a" in tenants
        assert "tenant_b" not in tenants
        assert fake_client_factory.clients_for("tenant_a")[0].closed is False
        assert fake_client_factory.clients_for("tenant_b")[0].closed is True

    @pytest.mark.asyncio
    async def test_all_leased_can_exceed_capacity(self, registry):
        for key in ("tenant_a", "tenant_b", "tenant_c"):
            await registry.open(key)

        assert registry.stats()["open"] == 3

        await registry.release("tenant_a")
        assert registry.stats()["open"] == 2

    @pytest.mark.asyncio
    async def test_connection_failure(self, registry, fake_client_factory):
        fake_client_factory.ping_error = ServerSelectionTimeoutError("no servers")

        with pytest.raises(StoreConnectionError) as exc:
            await registry.open("tenant_a")

        assert isinstance(exc.value, ConnectionError)
        assert exc.value.status_code == 503
        assert fake_client_factory.clients[0].closed is True
        assert registry.stats()["open"] == 0

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, registry, fake_client_factory):
        fake_client_factory.ping_error = ServerSelectionTimeoutError("no servers")
        with pytest.raises(StoreConnectionError):
            await registry.open("tenant_a")

        fake_client_factory.ping_error = None
        await registry.open("tenant_a")

        assert len(fake_client_factory.clients) == 2
        assert registry.stats()["tenants"]["tenant_a"]["state"] == "ready"

    @pytest.mark.asyncio
    async def test_concurrent_opens_all_see_failure(self, registry, fake_client_factory):
        fake_client_factory.ping_error = ServerSelectionTimeoutError("no servers")

        results = await asyncio.gather(
            *(registry.open("tenant_a") for _ in range(3)), return_exceptions=True
        )

        assert all(isinstance(r, StoreConnectionError) for r in results)
        assert len(fake_client_factory.clients) == 1

    @pytest.mark.asyncio
    async def test_invalid_key_never_connects(self, registry, fake_client_factory):
        with pytest.raises(InvalidTenant):
            await registry.open("bad/name")
        assert fake_client_factory.clients == []

    @pytest.mark.asyncio
    async def test_close_all(self, registry, fake_client_factory):
        await registry.open("tenant_a")
        await registry.open("tenant_b")

        await registry.close_all()

        assert registry.stats()["open"] == 0
        assert all(c.closed for c in fake_client_factory.clients)
