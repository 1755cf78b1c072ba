"""
Schema descriptor models for the catalog database.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

# Fields appended to every schema at creation time
TIMESTAMP_FIELDS = ("createdAt", "updatedAt")


class FieldType(str, Enum):
    """Closed set of value types a schema field may declare."""
    STRING = "String"
    NUMBER = "Number"
    DATE = "Date"
    BOOLEAN = "Boolean"
    ARRAY = "Array"
    OBJECT = "Object"
    NULL = "Null"


class FieldSpec(BaseModel):
    """Declared type and constraints of one schema field."""
    type: FieldType = Field(..., description="Value type")
    unique: bool = Field(default=False, description="No two documents may share a value")
    required: bool = Field(default=False, description="Field must be present on insert")

    class Config:
        extra = "forbid"


class SchemaDescriptor(BaseModel):
    """
    Schema document model for the catalog ``configs`` collection.

    One descriptor exists per (db, collection) pair.
    """
    id: Optional[str] = Field(None, alias="_id", description="MongoDB ObjectId as string")
    db: str = Field(..., description="Tenant database name")
    collection: str = Field(..., description="Collection name")
    fields: dict[str, FieldSpec] = Field(..., alias="schema", description="Field name to spec")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "SchemaDescriptor":
        doc = dict(doc)
        if "_id" in doc:
            doc["_id"] = str(doc["_id"])
        return cls(**doc)

    @property
    def field_names(self) -> set[str]:
        return set(self.fields)

    @property
    def unique_fields(self) -> list[str]:
        return [name for name, spec in self.fields.items() if spec.unique]

    @property
    def required_fields(self) -> list[str]:
        return [name for name, spec in self.fields.items() if spec.required]

    @property
    def date_fields(self) -> list[str]:
        return [name for name, spec in self.fields.items() if spec.type == FieldType.DATE]

    def schema_dict(self) -> dict[str, dict[str, Any]]:
        """Plain ``{field: {type, unique, required}}`` mapping for responses and storage."""
        return {name: spec.model_dump(mode="json") for name, spec in self.fields.items()}


def with_timestamp_fields(fields: dict[str, FieldSpec]) -> dict[str, FieldSpec]:
    """Return a copy of ``fields`` with createdAt/updatedAt appended as Date fields."""
    result = dict(fields)
    for name in TIMESTAMP_FIELDS:
        result[name] = FieldSpec(type=FieldType.DATE)
    return result
