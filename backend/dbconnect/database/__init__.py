"""
Database module - catalog, tenant and Redis connections.
"""
from dbconnect.database.connections import (
    get_mongo_client,
    get_catalog_database,
    get_redis_client,
    get_tenant_registry,
    close_connections,
)
from dbconnect.database.tenant_registry import ConnectionRegistry

__all__ = [
    "get_mongo_client",
    "get_catalog_database",
    "get_redis_client",
    "get_tenant_registry",
    "close_connections",
    "ConnectionRegistry",
]
