"""
Tenant database dependencies.
"""
from typing import Annotated, AsyncIterator, Optional

from fastapi import Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from dbconnect.database.connections import get_catalog_database, get_tenant_registry
from dbconnect.services.collection_service import CollectionService
from dbconnect.services.document_service import DocumentService
from dbconnect.services.schema_catalog import SchemaCatalog

TenantName = Annotated[Optional[str], Query(alias="db", description="Tenant database name")]


async def get_tenant_database(db: TenantName = None) -> AsyncIterator[AsyncIOMotorDatabase]:
    """
    Dependency leasing the tenant database named by ``?db=`` for one request.

    Raises:
        InvalidTenant: If ``db`` is missing or not a valid database name
        StoreConnectionError: If the tenant store is unreachable
    """
    registry = get_tenant_registry()
    async with registry.lease(db) as database:
        yield database


async def get_schema_catalog() -> SchemaCatalog:
    """Dependency to get SchemaCatalog instance."""
    return SchemaCatalog(await get_catalog_database())


async def get_collection_service(
    database: Annotated[AsyncIOMotorDatabase, Depends(get_tenant_database)],
    catalog: Annotated[SchemaCatalog, Depends(get_schema_catalog)],
    db: TenantName = None,
) -> CollectionService:
    """Dependency to get CollectionService instance."""
    return CollectionService(database, catalog, db_name=db)


async def get_document_service(
    database: Annotated[AsyncIOMotorDatabase, Depends(get_tenant_database)],
    catalog: Annotated[SchemaCatalog, Depends(get_schema_catalog)],
    db: TenantName = None,
) -> DocumentService:
    """Dependency to get DocumentService instance."""
    return DocumentService(database, catalog, db_name=db)
