"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; the application exception handler renders them into the
response envelope with the matching status code.
"""
from typing import Any

from fastapi import status


class DbConnectError(Exception):
    """Base class for client-facing errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "bad_request"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.code, **self.details}


class BadRequest(DbConnectError):
    pass


class Unauthorized(DbConnectError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"

    def __init__(self, reason: str, message: str | None = None):
        messages = {
            "missing": "No token, authorization denied",
            "expired": "Token has expired",
            "invalid": "Token is not valid",
        }
        super().__init__(message or messages.get(reason, "Unauthorized"), reason=reason)
        self.reason = reason


class Forbidden(DbConnectError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"

    def __init__(self, reason: str, message: str | None = None, **details: Any):
        super().__init__(message or "Forbidden", reason=reason, **details)
        self.reason = reason


class NotFound(DbConnectError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class SchemaMissing(NotFound):
    code = "schema_missing"

    def __init__(self, db: str, collection: str):
        super().__init__(
            f"Collection '{collection}' has no schema registered in database '{db}'",
            database=db,
            collection=collection,
        )


class Conflict(DbConnectError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class DuplicateValue(Conflict):
    """A unique-marked field already holds the submitted value."""

    def __init__(self, field: str, value: Any):
        super().__init__(
            f"Field '{field}' with value '{value}' must be unique.",
            field=field,
            value=value,
        )
        self.field = field
        self.value = value


class FieldUnknown(DbConnectError):
    code = "field_unknown"

    def __init__(self, field: str):
        super().__init__(f"Field '{field}' is not defined in the schema", field=field)
        self.field = field


class TypeMismatch(DbConnectError):
    code = "type_mismatch"

    def __init__(self, field: str, expected: str, actual: str):
        super().__init__(
            f"Field '{field}' should be of type '{expected}'",
            field=field,
            expected=expected,
            actual=actual,
        )
        self.field = field
        self.expected = expected
        self.actual = actual


class FieldRequired(DbConnectError):
    code = "field_required"

    def __init__(self, field: str):
        super().__init__(f"Field '{field}' is required", field=field)
        self.field = field


class InvalidId(DbConnectError):
    code = "invalid_id"

    def __init__(self, document_id: Any):
        super().__init__(f"'{document_id}' is not a valid document id", id=str(document_id))


class InvalidTenant(DbConnectError):
    code = "invalid_tenant"


class InvalidCollection(DbConnectError):
    code = "invalid_collection"


class EmptyUpdate(DbConnectError):
    code = "empty_update"

    def __init__(self):
        super().__init__("No fields to update")


class StoreConnectionError(DbConnectError, ConnectionError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "connection_error"
