"""
Request and response schemas for API endpoints.
"""
from dbconnect.schemas.auth import ActionRequest, IdentityInfo, TokenRefreshResponse
from dbconnect.schemas.collection import CollectionRequest, DocumentUpdateRequest

__all__ = [
    # Auth
    "ActionRequest",
    "IdentityInfo",
    "TokenRefreshResponse",
    # Collections
    "CollectionRequest",
    "DocumentUpdateRequest",
]
