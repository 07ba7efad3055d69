"""Exception handlers — translate domain exceptions into the JSON error envelope.

| Exception                    | Status |
|------------------------------|--------|
| RecordValidationError        | 400    |
| RequestValidationError       | 400    |
| DuplicateEntityError         | 400    |
| BulkInsertError              | 400    |
| EntityNotFoundError          | 404    |
| unknown route                | 404    |
| ResourceExhaustedError       | 503    |
| anything else                | 500    |
"""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dualstore.config import get_settings
from dualstore.domain.exceptions import (
    BulkInsertError,
    DuplicateEntityError,
    EntityNotFoundError,
    FieldError,
    RecordValidationError,
    ResourceExhaustedError,
)

logger = logging.getLogger(__name__)


def _validation_body(errors: list[FieldError]) -> dict:
    return {
        "success": False,
        "message": "Validation Error",
        "errors": [e.to_dict() for e in errors],
    }


def _field_error_from_pydantic(error: dict) -> FieldError:
    """``loc`` looks like ``("body", 2, "price")`` or ``("query", "limit")``."""
    loc = [part for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    index = next((part for part in loc if isinstance(part, int)), None)
    names = [str(part) for part in loc if not isinstance(part, int)]
    field = names[-1] if names else "body"
    return FieldError(field, error.get("msg", "Invalid value"), index=index)


async def record_validation_handler(request: Request, exc: RecordValidationError) -> JSONResponse:
    logger.info("Validation failed on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=_validation_body(exc.errors)
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [_field_error_from_pydantic(e) for e in exc.errors()]
    logger.info(
        "Malformed request on %s %s: %d error(s)", request.method, request.url.path, len(errors)
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=_validation_body(errors)
    )


async def duplicate_entity_handler(request: Request, exc: DuplicateEntityError) -> JSONResponse:
    logger.info("Duplicate %s on %s: %s", exc.entity_type, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": f"{exc.field} already exists",
            "field": exc.field,
        },
    )


async def bulk_insert_handler(request: Request, exc: BulkInsertError) -> JSONResponse:
    logger.warning("Bulk insert on %s stopped: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Bulk insert failed",
            "inserted": exc.inserted,
            "errors": [e.to_dict() for e in exc.errors],
        },
    )


async def not_found_handler(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    logger.info("%s", exc)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"success": False, "error": f"{exc.entity_type} not found"},
    )


async def resource_exhausted_handler(request: Request, exc: ResourceExhaustedError) -> JSONResponse:
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "success": False,
            "message": "Service temporarily unavailable",
            "resource": exc.resource,
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Route not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content: dict = {"success": False, "message": "Internal Server Error"}
    if not get_settings().is_production:
        content["detail"] = str(exc)
        content["trace"] = traceback.format_exception(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler above to ``app``."""
    app.add_exception_handler(RecordValidationError, record_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(DuplicateEntityError, duplicate_entity_handler)
    app.add_exception_handler(BulkInsertError, bulk_insert_handler)
    app.add_exception_handler(EntityNotFoundError, not_found_handler)
    app.add_exception_handler(ResourceExhaustedError, resource_exhausted_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
