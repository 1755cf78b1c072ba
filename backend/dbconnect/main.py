"""
dbconnect Backend - FastAPI Application

Schema-governed document collections in per-tenant MongoDB databases.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from pymongo.errors import PyMongoError

from dbconnect.config import get_settings
from dbconnect.core.errors import DbConnectError
from dbconnect.core.responses import envelope_response
from dbconnect.database.connections import close_connections, get_catalog_database
from dbconnect.routers import auth, collections
from dbconnect.services.schema_catalog import SchemaCatalog

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("dbconnect")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Create the catalog indexes

    Shutdown:
    - Close catalog, tenant and Redis connections
    """
    logger.info("Starting up dbconnect Backend (%s)...", settings.environment)

    try:
        catalog = SchemaCatalog(await get_catalog_database())
        await catalog.ensure_indexes()
        logger.info("Catalog indexes created")
    except PyMongoError as e:
        logger.warning("Catalog initialization warning: %s", e)

    yield

    logger.info("Shutting down dbconnect Backend...")
    await close_connections()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title="dbconnect API",
    description="""
## Dynamic collection API

Declare collections with a field schema inside your own database, then insert,
query, update and delete documents validated against that schema.

### Authentication
Every endpoint requires a signed auth token in the `x-auth-token` header.
Website session tokens are only accepted from allow-listed origins.

Sensitive calls also carry a short-lived action token in the JSON body field
`request`; it must be issued less than five minutes before use.
    """,
    version=settings.app_version,
    lifespan=lifespan,
)


def _request_context(request: Request) -> dict:
    return {
        "database": request.query_params.get("db"),
        "collection": request.path_params.get("collection"),
        "method": request.method,
    }


@app.exception_handler(DbConnectError)
async def dbconnect_error_handler(request: Request, exc: DbConnectError):
    """Render service errors into the response envelope."""
    return envelope_response(
        exc.status_code, False, exc.message,
        data=exc.to_payload(), **_request_context(request),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Render request body/query validation failures into the response envelope."""
    return envelope_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY, False, "Request validation failed",
        data={"error": "validation_error", "detail": exc.errors()},
        **_request_context(request),
    )


@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    """Unexpected driver failures are logged and reported without internals."""
    logger.exception("Store error on %s %s", request.method, request.url.path)
    return envelope_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, False, "Database operation failed",
        data={"error": "store_error"}, **_request_context(request),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return envelope_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, False, "Internal server error",
        data={"error": "internal_error"}, **_request_context(request),
    )


# Include routers
app.include_router(auth.router)
app.include_router(collections.router)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "dbconnect API",
        "version": settings.app_version,
        "apiVersion": settings.api_version,
        "docs": "/docs",
    }
