"""
Per-tenant MongoDB connection registry.

Each tenant database gets its own client, opened lazily on first use. Concurrent
first opens of the same tenant share one connection attempt. Idle connections
are closed least-recently-used first once the registry grows past capacity;
connections with outstanding leases are never closed.
"""
import asyncio
import logging
import re
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from dbconnect.core.errors import InvalidTenant, StoreConnectionError

logger = logging.getLogger(__name__)

# MongoDB database names: no /\. "$*<>:|? or NUL, under 64 bytes
_TENANT_KEY_PATTERN = re.compile(r'^[^/\\. "$*<>:|?\x00]+$')
_MAX_TENANT_KEY_BYTES = 63


def validate_tenant_key(key: Optional[str]) -> str:
    """Return ``key`` if it is a usable database name, else raise InvalidTenant."""
    if not key:
        raise InvalidTenant("Query parameter 'db' is required")
    if len(key.encode("utf-8")) > _MAX_TENANT_KEY_BYTES or not _TENANT_KEY_PATTERN.match(key):
        raise InvalidTenant(f"'{key}' is not a valid database name", database=key)
    return key


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"


@dataclass
class TenantConnection:
    """Registry entry for one tenant database."""
    key: str
    state: ConnectionState = ConnectionState.CONNECTING
    client: Optional[AsyncIOMotorClient] = None
    database: Optional[AsyncIOMotorDatabase] = None
    leases: int = 0
    attempt: Optional[asyncio.Future] = None


class ConnectionRegistry:
    """Owns one live client per tenant key."""

    def __init__(
        self,
        base_uri: str,
        params: str = "",
        capacity: int = 64,
        server_selection_timeout_ms: int = 5000,
        client_factory: Callable[..., AsyncIOMotorClient] = AsyncIOMotorClient,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.base_uri = base_uri.rstrip("/")
        self.params = params.lstrip("?")
        self.capacity = capacity
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client_factory = client_factory
        self._entries: "OrderedDict[str, TenantConnection]" = OrderedDict()
        self._lock = asyncio.Lock()

    def build_uri(self, key: str) -> str:
        uri = f"{self.base_uri}/{key}"
        if self.params:
            uri = f"{uri}?{self.params}"
        return uri

    async def open(self, key: str) -> AsyncIOMotorDatabase:
        """
        Acquire the database handle for a tenant, connecting if needed.

        Every successful call takes a lease that must be returned with
        ``release``; prefer the ``lease`` context manager.

        Raises:
            InvalidTenant: If ``key`` is not a valid database name
            StoreConnectionError: If the tenant store is unreachable
        """
        validate_tenant_key(key)

        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = TenantConnection(key=key)
                entry.attempt = asyncio.ensure_future(self._connect(entry))
                self._entries[key] = entry
            self._entries.move_to_end(key)
            entry.leases += 1

        if entry.state is not ConnectionState.READY:
            try:
                await asyncio.shield(entry.attempt)
            except BaseException:
                entry.leases -= 1
                raise
            await self._evict_idle()

        return entry.database

    async def release(self, key: str) -> None:
        """Return one lease taken by ``open``."""
        entry = self._entries.get(key)
        if entry is not None and entry.leases > 0:
            entry.leases -= 1
        await self._evict_idle()

    @asynccontextmanager
    async def lease(self, key: str) -> AsyncIterator[AsyncIOMotorDatabase]:
        database = await self.open(key)
        try:
            yield database
        finally:
            await self.release(key)

    async def close_all(self) -> None:
        """Close every tenant client."""
        async with self._lock:
            for entry in self._entries.values():
                if entry.client is not None:
                    entry.client.close()
            count = len(self._entries)
            self._entries.clear()
        logger.info("Closed %d tenant connection(s)", count)

    def stats(self) -> dict:
        return {
            "capacity": self.capacity,
            "open": len(self._entries),
            "tenants": {
                key: {"state": entry.state.value, "leases": entry.leases}
                for key, entry in self._entries.items()
            },
        }

    async def _connect(self, entry: TenantConnection) -> None:
        client = None
        try:
            client = self._client_factory(
                self.build_uri(entry.key),
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            )
            await client.admin.command("ping")
        except PyMongoError as e:
            if client is not None:
                client.close()
            entry.state = ConnectionState.FAILED
            if self._entries.get(entry.key) is entry:
                del self._entries[entry.key]
            logger.error("Error connecting to tenant database '%s': %s", entry.key, e)
            raise StoreConnectionError(
                f"Failed to connect to database '{entry.key}'", database=entry.key
            ) from e

        entry.client = client
        entry.database = client[entry.key]
        entry.state = ConnectionState.READY
        logger.info("Tenant database '%s' connected", entry.key)

    async def _evict_idle(self) -> None:
        async with self._lock:
            excess = len(self._entries) - self.capacity
            if excess <= 0:
                return
            for key, entry in list(self._entries.items()):
                if excess <= 0:
                    break
                if entry.state is ConnectionState.READY and entry.leases == 0:
                    del self._entries[key]
                    entry.client.close()
                    excess -= 1
                    logger.info("Evicted idle tenant connection '%s'", key)
