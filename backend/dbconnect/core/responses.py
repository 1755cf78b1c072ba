"""
Uniform response envelope shared by every route.
"""
from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from dbconnect.config import get_settings


def build_envelope(
    success: bool,
    message: str,
    database: str | None = None,
    collection: str | None = None,
    method: str | None = None,
    data: Any = None,
) -> dict[str, Any]:
    """Wrap a result in the {success, message, data: {..., meta}} envelope."""
    settings = get_settings()
    return {
        "success": success,
        "message": message,
        "data": {
            "database": database,
            "collection": collection,
            "method": method,
            "data": data,
            "meta": {
                "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
                "version": settings.app_version,
                "apiVersion": settings.api_version,
            },
        },
    }


def envelope_response(
    status_code: int,
    success: bool,
    message: str,
    database: str | None = None,
    collection: str | None = None,
    method: str | None = None,
    data: Any = None,
) -> JSONResponse:
    """JSONResponse carrying the envelope; datetimes and the like are encoded."""
    content = build_envelope(success, message, database, collection, method, data)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
