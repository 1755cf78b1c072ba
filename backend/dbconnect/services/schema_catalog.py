"""
Schema catalog: persists the field schema recorded for each (tenant, collection).
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from dbconnect.core.errors import Conflict
from dbconnect.database.catalog_db import Collections
from dbconnect.models.schema import FieldSpec, SchemaDescriptor, with_timestamp_fields

logger = logging.getLogger(__name__)


class SchemaCatalog:
    """Service for schema descriptor storage."""

    def __init__(self, db: AsyncIOMotorDatabase):
        """Initialize with the catalog database."""
        self.db = db
        self.configs = db[Collections.CONFIGS]

    async def ensure_indexes(self) -> None:
        """Create the unique (db, collection) index."""
        for index_def in Collections.INDEXES[Collections.CONFIGS]:
            keys = index_def["keys"]
            kwargs = {k: v for k, v in index_def.items() if k != "keys"}
            await self.configs.create_index(keys, **kwargs)

    async def define(
        self, db: str, collection: str, fields: dict[str, FieldSpec]
    ) -> SchemaDescriptor:
        """
        Register the schema for a new collection.

        createdAt/updatedAt are appended as Date fields.

        Raises:
            Conflict: If a descriptor for (db, collection) already exists
        """
        if await self.configs.find_one({"db": db, "collection": collection}):
            raise _already_exists(db, collection)

        now = datetime.now(timezone.utc)
        descriptor = SchemaDescriptor(
            db=db,
            collection=collection,
            fields=with_timestamp_fields(fields),
            created_at=now,
            updated_at=now,
        )
        doc = {
            "db": db,
            "collection": collection,
            "schema": descriptor.schema_dict(),
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            result = await self.configs.insert_one(doc)
        except DuplicateKeyError:
            raise _already_exists(db, collection)

        descriptor.id = str(result.inserted_id)
        logger.info("Registered schema for '%s.%s'", db, collection)
        return descriptor

    async def lookup(self, db: str, collection: str) -> Optional[SchemaDescriptor]:
        """Get the descriptor for (db, collection), or None."""
        doc = await self.configs.find_one({"db": db, "collection": collection})
        if not doc:
            return None
        return SchemaDescriptor.from_document(doc)

    async def remove(self, db: str, collection: str) -> bool:
        """Delete the descriptor for (db, collection). Returns whether one was deleted."""
        result = await self.configs.delete_one({"db": db, "collection": collection})
        return result.deleted_count > 0

    async def list(self, db: str) -> list[SchemaDescriptor]:
        """All descriptors registered under ``db``."""
        cursor = self.configs.find({"db": db}).sort("collection", 1)
        docs = await cursor.to_list(length=None)
        return [SchemaDescriptor.from_document(doc) for doc in docs]


def _already_exists(db: str, collection: str) -> Conflict:
    return Conflict(
        f"Collection '{collection}' already exists in database '{db}'",
        database=db,
        collection=collection,
    )
