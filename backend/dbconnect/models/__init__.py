"""
Pydantic models and data structures.
"""
from dbconnect.models.identity import (
    ActionVerified,
    ApiKeyIdentity,
    Identity,
    TrustClass,
    WebsiteSession,
)
from dbconnect.models.schema import FieldSpec, FieldType, SchemaDescriptor

__all__ = [
    "ActionVerified",
    "ApiKeyIdentity",
    "Identity",
    "TrustClass",
    "WebsiteSession",
    "FieldSpec",
    "FieldType",
    "SchemaDescriptor",
]
