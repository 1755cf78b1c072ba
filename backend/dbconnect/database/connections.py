"""
Connection management for the catalog MongoDB, tenant MongoDB and Redis.
"""
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from redis.asyncio import Redis

from dbconnect.config import get_settings
from dbconnect.database.tenant_registry import ConnectionRegistry

# Global connection instances
_mongo_client: Optional[AsyncIOMotorClient] = None
_redis_client: Optional[Redis] = None
_tenant_registry: Optional[ConnectionRegistry] = None


async def get_mongo_client() -> AsyncIOMotorClient:
    """Get or create the catalog MongoDB client."""
    global _mongo_client
    if _mongo_client is None:
        settings = get_settings()
        _mongo_client = AsyncIOMotorClient(settings.catalog_uri)
    return _mongo_client


async def get_catalog_database() -> AsyncIOMotorDatabase:
    """Get the database holding schema descriptors."""
    client = await get_mongo_client()
    return client[get_settings().catalog_db_name]


async def get_redis_client() -> Redis:
    """Get or create Redis client."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            decode_responses=True,
        )
    return _redis_client


def get_tenant_registry() -> ConnectionRegistry:
    """Get or create the tenant connection registry."""
    global _tenant_registry
    if _tenant_registry is None:
        settings = get_settings()
        _tenant_registry = ConnectionRegistry(
            base_uri=settings.tenant_uri,
            params=settings.tenant_mongo_params,
            capacity=settings.tenant_connection_capacity,
            server_selection_timeout_ms=settings.server_selection_timeout_ms,
        )
    return _tenant_registry


async def close_connections():
    """Close all database connections."""
    global _mongo_client, _redis_client, _tenant_registry

    if _tenant_registry is not None:
        await _tenant_registry.close_all()
        _tenant_registry = None

    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None
