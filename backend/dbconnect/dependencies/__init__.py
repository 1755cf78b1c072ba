"""
Dependencies for dependency injection in routes.
"""
from dbconnect.dependencies.auth import (
    get_access_gate,
    get_caller,
    get_identity,
    require_action,
)
from dbconnect.dependencies.tenant import (
    get_collection_service,
    get_document_service,
    get_schema_catalog,
    get_tenant_database,
)

__all__ = [
    "get_access_gate",
    "get_caller",
    "get_identity",
    "require_action",
    "get_collection_service",
    "get_document_service",
    "get_schema_catalog",
    "get_tenant_database",
]
