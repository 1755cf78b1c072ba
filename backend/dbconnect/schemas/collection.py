"""
Collection and document request schemas.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field

from dbconnect.models.schema import FieldSpec


class CollectionRequest(BaseModel):
    """
    POST body for a collection route.

    Carries either a schema (create the collection) or a document (insert).
    """
    collection_schema: Optional[dict[str, FieldSpec]] = Field(
        None,
        alias="collectionSchema",
        description="Field name to {type, unique, required}",
    )
    data: Optional[dict[str, Any]] = Field(None, description="Document to insert")
    request: Optional[str] = Field(None, description="Embedded action token")

    class Config:
        populate_by_name = True


class DocumentUpdateRequest(BaseModel):
    """PUT body: the fields to set on one document."""
    data: dict[str, Any] = Field(..., description="Fields to update")
    request: Optional[str] = Field(None, description="Embedded action token")
