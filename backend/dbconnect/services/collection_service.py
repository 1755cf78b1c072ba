"""
Collection lifecycle service: list, create and drop tenant collections.
"""
import logging
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from dbconnect.core.errors import BadRequest, Conflict, InvalidCollection, NotFound
from dbconnect.models.schema import FieldSpec, FieldType
from dbconnect.services.schema_catalog import SchemaCatalog

logger = logging.getLogger(__name__)

_MAX_COLLECTION_NAME_BYTES = 120

# Path segment that lists collections instead of reading one
LIST_COLLECTIONS = "collection"


def validate_collection_name(name: str) -> str:
    """Return ``name`` if it is usable as a tenant collection name."""
    if (
        not name
        or "$" in name
        or "\x00" in name
        or name.startswith("system.")
        or name == LIST_COLLECTIONS
        or len(name.encode("utf-8")) > _MAX_COLLECTION_NAME_BYTES
    ):
        raise InvalidCollection(f"'{name}' is not a valid collection name", collection=name)
    return name


def validate_field_names(fields: dict[str, FieldSpec]) -> None:
    """Schema field names must be storable top-level document keys."""
    for name in fields:
        if not name or name == "_id" or name.startswith("$") or "." in name:
            raise BadRequest(f"'{name}' is not a valid field name", field=name)


async def physical_collection_exists(db: AsyncIOMotorDatabase, name: str) -> bool:
    return name in await db.list_collection_names()


class CollectionService:
    """Service for collection operations inside one tenant database."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        catalog: SchemaCatalog,
        db_name: Optional[str] = None,
    ):
        """Initialize with the tenant database and the schema catalog."""
        self.db = db
        self.db_name = db_name or db.name
        self.catalog = catalog

    async def list_collections(self) -> list[dict[str, Any]]:
        """
        List physical collections with their registered schema.

        A collection without a descriptor is reported with ``schema: None``.
        """
        names = sorted(await self.db.list_collection_names())
        descriptors = {d.collection: d for d in await self.catalog.list(self.db_name)}

        return [
            {
                "name": name,
                "schema": descriptors[name].schema_dict() if name in descriptors else None,
            }
            for name in names
        ]

    async def create_collection(
        self, name: str, fields: dict[str, FieldSpec]
    ) -> dict[str, Any]:
        """
        Register a schema and create the physical collection.

        Existence is judged by the catalog; every collection must be created
        through this method to keep catalog and store aligned. Unique indexes
        are built before the schema is registered, so a collection whose
        existing documents already repeat a unique value is refused.

        Raises:
            Conflict: If a schema for the collection is already registered,
                or existing documents hold duplicates of a unique field
        """
        validate_collection_name(name)
        validate_field_names(fields)

        if await self.catalog.lookup(self.db_name, name) is not None:
            raise Conflict(
                f"Collection '{name}' already exists in database '{self.db_name}'",
                database=self.db_name,
                collection=name,
            )

        if not await physical_collection_exists(self.db, name):
            await self.db.create_collection(name)

        await self._create_unique_indexes(name, fields)
        descriptor = await self.catalog.define(self.db_name, name, fields)

        logger.info("Created collection '%s' in '%s'", name, self.db_name)
        return {"name": name, "schema": descriptor.schema_dict()}

    async def _create_unique_indexes(self, name: str, fields: dict[str, FieldSpec]) -> None:
        """
        Build a sparse unique index per unique field.

        Array fields get none: MongoDB indexes each array element separately,
        which would make elements unique rather than whole arrays. Those rely
        on the document service's equality check alone, which does not close
        the race between two concurrent writes of the same array.
        """
        collection = self.db[name]
        for field_name, spec in fields.items():
            if not spec.unique or spec.type == FieldType.ARRAY:
                continue
            try:
                await collection.create_index(field_name, unique=True, sparse=True)
            except DuplicateKeyError:
                raise Conflict(
                    f"Field '{field_name}' already holds duplicate values in collection '{name}'",
                    database=self.db_name,
                    collection=name,
                    field=field_name,
                )

    async def drop_collection(self, name: str) -> dict[str, Any]:
        """
        Drop the physical collection, then its descriptor.

        If the drop fails the catalog is left untouched and the error
        propagates; a failure removing the descriptor afterwards is not
        rolled back.

        Raises:
            NotFound: If the collection does not exist in the tenant database
        """
        if not await physical_collection_exists(self.db, name):
            raise NotFound(
                f"Collection '{name}' does not exist",
                database=self.db_name,
                collection=name,
            )

        await self.db.drop_collection(name)
        schema_removed = await self.catalog.remove(self.db_name, name)

        logger.info("Dropped collection '%s' from '%s'", name, self.db_name)
        return {"name": name, "schemaRemoved": schema_removed}
