"""
Collections router: dynamic collection and document operations per tenant.
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from dbconnect.core.errors import BadRequest
from dbconnect.core.responses import envelope_response
from dbconnect.dependencies.auth import Caller
from dbconnect.dependencies.tenant import (
    TenantName,
    get_collection_service,
    get_document_service,
)
from dbconnect.schemas.collection import CollectionRequest, DocumentUpdateRequest
from dbconnect.services.collection_service import LIST_COLLECTIONS, CollectionService
from dbconnect.services.document_service import DocumentService

router = APIRouter(prefix="/api/app", tags=["Collections"])

CollectionServiceDep = Annotated[CollectionService, Depends(get_collection_service)]
DocumentServiceDep = Annotated[DocumentService, Depends(get_document_service)]


@router.get("/{collection}", summary="List collections or query documents")
async def read_collection(
    collection: str,
    request: Request,
    caller: Caller,
    collections: CollectionServiceDep,
    documents: DocumentServiceDep,
    db: TenantName = None,
    page: Optional[int] = Query(None, description="Page number (default: 1)"),
    limit: Optional[int] = Query(None, description="Items per page (default: 100)"),
):
    """
    `GET /collection?db=D` lists the tenant's collections with their schemas.

    `GET /{collection}?db=D&page=P&limit=L` returns one page of documents.
    """
    if collection == LIST_COLLECTIONS:
        result = await collections.list_collections()
        return envelope_response(
            status.HTTP_200_OK, True,
            "Collection names and schemas fetched successfully",
            db, None, request.method, result,
        )

    result = await documents.query(collection, page=page, limit=limit)
    return envelope_response(
        status.HTTP_200_OK, True, "Data fetched successfully",
        db, collection, request.method, result,
    )


@router.post("/{collection}", summary="Create a collection or insert a document")
async def post_collection(
    collection: str,
    body: CollectionRequest,
    request: Request,
    caller: Caller,
    collections: CollectionServiceDep,
    documents: DocumentServiceDep,
    db: TenantName = None,
):
    """
    - **collectionSchema**: create the collection with this schema
    - **data**: insert this document
    - **request**: optional action token
    """
    if body.collection_schema is not None:
        result = await collections.create_collection(collection, body.collection_schema)
        return envelope_response(
            status.HTTP_201_CREATED, True,
            f"Collection '{collection}' created successfully in database '{db}' with the defined schema",
            db, collection, request.method, result,
        )

    if body.data is not None:
        result = await documents.insert(collection, body.data)
        return envelope_response(
            status.HTTP_201_CREATED, True,
            f"Data inserted successfully into collection '{collection}'",
            db, collection, request.method, result,
        )

    raise BadRequest(
        "Request must contain either 'collectionSchema' for creating a collection "
        "or 'data' for inserting data."
    )


@router.put("/{collection}", summary="Update a document")
async def update_document(
    collection: str,
    body: DocumentUpdateRequest,
    request: Request,
    caller: Caller,
    documents: DocumentServiceDep,
    db: TenantName = None,
    id: Optional[str] = Query(None, description="Document id"),
):
    """Set the given fields on the document `?id=I`; other fields are kept."""
    result = await documents.update(collection, id, body.data)
    return envelope_response(
        status.HTTP_200_OK, True,
        f"{result['modifiedCount']} document(s) updated in collection '{collection}'",
        db, collection, request.method, result,
    )


@router.delete("/{collection}", summary="Delete a document or drop a collection")
async def delete_collection(
    collection: str,
    request: Request,
    caller: Caller,
    collections: CollectionServiceDep,
    documents: DocumentServiceDep,
    db: TenantName = None,
    id: Optional[str] = Query(None, description="Document id; omit to drop the collection"),
):
    """
    With `?id=I`, delete that document. Without it, drop the collection and its schema.

    **Warning**: Dropping cannot be undone.
    """
    if id:
        result = await documents.delete(collection, id)
        return envelope_response(
            status.HTTP_200_OK, True,
            f"1 document deleted from collection '{collection}'",
            db, collection, request.method, result,
        )

    result = await collections.drop_collection(collection)
    return envelope_response(
        status.HTTP_200_OK, True,
        f"Collection '{collection}' and its schema configuration deleted successfully from database '{db}'",
        db, collection, request.method, result,
    )
