"""
Document service for schema-validated CRUD and pagination.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId as BsonInvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from dbconnect.config import get_settings
from dbconnect.core.errors import (
    DuplicateValue,
    EmptyUpdate,
    InvalidId,
    NotFound,
    SchemaMissing,
)
from dbconnect.models.schema import TIMESTAMP_FIELDS, SchemaDescriptor
from dbconnect.services.collection_service import physical_collection_exists
from dbconnect.services.schema_catalog import SchemaCatalog
from dbconnect.services.validation import check_document, parse_timestamp

logger = logging.getLogger(__name__)


def to_object_id(document_id: Any) -> ObjectId:
    """Resolve a client-supplied id to an ObjectId."""
    if isinstance(document_id, ObjectId):
        return document_id
    # 24 hex characters only
    if not isinstance(document_id, str) or len(document_id) != 24:
        raise InvalidId(document_id)
    try:
        return ObjectId(document_id)
    except BsonInvalidId:
        raise InvalidId(document_id)


def serialize_document(doc: dict[str, Any]) -> dict[str, Any]:
    """Render a stored document for JSON output."""
    result = dict(doc)
    if "_id" in result:
        result["_id"] = str(result["_id"])
    return result


def normalize_page(page: Optional[int], limit: Optional[int], default_limit: int) -> tuple[int, int]:
    """Fall back to page 1 / the default limit for absent or non-positive inputs."""
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else default_limit
    return page, limit


class DocumentService:
    """Service for document operations inside one tenant database."""

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
        self.settings = get_settings()

    # ==================== Lookups ====================

    async def _require_schema(self, collection: str) -> SchemaDescriptor:
        descriptor = await self.catalog.lookup(self.db_name, collection)
        if descriptor is None:
            raise SchemaMissing(self.db_name, collection)
        return descriptor

    async def _require_collection(self, collection: str) -> None:
        if not await physical_collection_exists(self.db, collection):
            raise NotFound(
                f"Collection '{collection}' does not exist",
                database=self.db_name,
                collection=collection,
            )

    async def _check_unique(
        self,
        collection: str,
        fields: list[str],
        document: Mapping[str, Any],
        exclude_id: Optional[ObjectId] = None,
    ) -> None:
        """
        Fail early if a unique field value is already taken.

        Candidates are selected with ``$eq`` so an object value is never read
        as query operators, then compared whole: ``$eq`` on an array also
        matches stored arrays that merely contain it as an element.
        """
        for field_name in fields:
            value = document[field_name]
            query: dict[str, Any] = {field_name: {"$eq": value}}
            if exclude_id is not None:
                query["_id"] = {"$ne": exclude_id}
            cursor = self.db[collection].find(query, {field_name: 1})
            for candidate in await cursor.to_list(length=None):
                if candidate.get(field_name) == value:
                    raise DuplicateValue(field_name, value)

    def _normalize_dates(
        self, descriptor: SchemaDescriptor, document: dict[str, Any]
    ) -> dict[str, Any]:
        for field_name in descriptor.date_fields:
            if field_name in document:
                document[field_name] = parse_timestamp(field_name, document[field_name])
        return document

    # ==================== CRUD ====================

    async def insert(self, collection: str, raw: Mapping[str, Any]) -> dict[str, Any]:
        """
        Validate and insert one document.

        createdAt/updatedAt default to now when absent; date strings are parsed.

        Returns:
            The inserted document, including its generated ``_id``

        Raises:
            SchemaMissing: If the collection has no registered schema
            FieldUnknown, TypeMismatch, FieldRequired: On schema violations
            DuplicateValue: If a unique field value already exists
        """
        descriptor = await self._require_schema(collection)

        document = dict(raw)
        now = datetime.now(timezone.utc)
        for field_name in TIMESTAMP_FIELDS:
            if field_name not in document:
                document[field_name] = now
        self._normalize_dates(descriptor, document)

        result = check_document(descriptor, document)
        await self._check_unique(collection, result.unique_fields, document)

        try:
            inserted = await self.db[collection].insert_one(document)
        except DuplicateKeyError as e:
            # Another insert won the race between the check and the write
            raise self._duplicate_from_error(descriptor, document, e)

        document["_id"] = inserted.inserted_id
        logger.debug("Inserted %s into '%s.%s'", inserted.inserted_id, self.db_name, collection)
        return serialize_document(document)

    async def query(
        self,
        collection: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Get one page of documents.

        Returns:
            ``{"documents": [...], "pagination": {page, limit, total, hasMore}}``

        Raises:
            NotFound: If the collection does not exist
        """
        await self._require_collection(collection)

        page, limit = normalize_page(page, limit, self.settings.default_page_size)
        skip = (page - 1) * limit

        total = await self.db[collection].count_documents({})
        cursor = self.db[collection].find({}).sort("_id", 1).skip(skip).limit(limit)
        documents = await cursor.to_list(length=limit)

        return {
            "documents": [serialize_document(doc) for doc in documents],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "hasMore": page * limit < total,
            },
        }

    async def update(
        self, collection: str, document_id: Any, patch: Mapping[str, Any]
    ) -> dict[str, Any]:
        """
        Apply a validated partial update to one document.

        updatedAt is stamped with the current time unless the patch sets it.

        Raises:
            NotFound: If the collection or the document does not exist
            SchemaMissing: If the collection has no registered schema
            InvalidId: If ``document_id`` is not an ObjectId
            EmptyUpdate: If the patch is empty
            FieldUnknown, TypeMismatch: On schema violations
            DuplicateValue: If a unique field value already exists
        """
        await self._require_collection(collection)
        descriptor = await self._require_schema(collection)

        if not patch:
            raise EmptyUpdate()

        object_id = to_object_id(document_id)

        changes = self._normalize_dates(descriptor, dict(patch))
        result = check_document(descriptor, changes, partial=True)
        await self._check_unique(collection, result.unique_fields, changes, exclude_id=object_id)

        if "updatedAt" not in changes:
            changes["updatedAt"] = datetime.now(timezone.utc)

        try:
            outcome = await self.db[collection].update_one(
                {"_id": object_id},
                {"$set": changes},
            )
        except DuplicateKeyError as e:
            raise self._duplicate_from_error(descriptor, changes, e)

        if outcome.matched_count == 0:
            raise NotFound(
                f"No document found with the specified _id: '{document_id}'",
                id=str(document_id),
            )

        return {
            "_id": str(object_id),
            "matchedCount": outcome.matched_count,
            "modifiedCount": outcome.modified_count,
        }

    async def delete(self, collection: str, document_id: Any) -> dict[str, Any]:
        """
        Delete one document by id.

        Raises:
            NotFound: If the collection or the document does not exist
            InvalidId: If ``document_id`` is not an ObjectId
        """
        await self._require_collection(collection)
        object_id = to_object_id(document_id)

        result = await self.db[collection].delete_one({"_id": object_id})

        if result.deleted_count == 0:
            raise NotFound(
                f"No document found with the specified _id: '{document_id}'",
                id=str(document_id),
            )

        return {"_id": str(object_id), "deletedCount": result.deleted_count}

    # ==================== Helpers ====================

    @staticmethod
    def _duplicate_from_error(
        descriptor: SchemaDescriptor,
        document: Mapping[str, Any],
        error: DuplicateKeyError,
    ) -> DuplicateValue:
        """Map a store duplicate-key rejection onto the offending unique field."""
        key_value = (error.details or {}).get("keyValue") or {}
        candidates = [name for name in descriptor.unique_fields if name in document]
        for field_name in candidates:
            if field_name in key_value:
                return DuplicateValue(field_name, document[field_name])
        if candidates:
            return DuplicateValue(candidates[0], document[candidates[0]])
        return DuplicateValue("_id", str(document.get("_id")))
