"""Entry point for the retrieval gateway."""

import sys
import time
import uuid
from typing import Dict, Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.exceptions import (
    ArchiveUnavailableError,
    ConfigurationError,
    InvalidIdentifierError,
    InvalidRangeError,
    IOFailureError,
    LookupFailureError,
    MalformedArchiveError,
    MissingIdentifierError,
    NotFoundError,
    RangeError,
    RetrievalError,
    UnsupportedRangeError,
)
from common.logging_config import setup_logging
from gateway.config import Settings, load_settings
from gateway.repositories.mapping_store import MappingStore
from gateway.routes.health_routes import router as health_router
from gateway.routes.piece_routes import router as piece_router
from gateway.schemas.common import ErrorResponse
from gateway.services.retrieval_service import RetrievalService

logger = setup_logging('gateway')
setup_logging('archive')

RANGE_NOT_SATISFIABLE = 416


def _error_response(
    status_code: int,
    exc: Exception,
    code: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=code).model_dump(),
        headers=headers,
    )


def _unsatisfiable_headers(exc: RangeError) -> Optional[Dict[str, str]]:
    if exc.total_length is None:
        return None
    return {"Content-Range": f"bytes */{exc.total_length}"}


async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    range_header = request.headers.get("range")

    logger.info(
        f"Request started: {request.method} {request.url.path} "
        f"range={range_header or '-'} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


async def missing_identifier_handler(request: Request, exc: MissingIdentifierError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Missing identifier: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, exc, "MISSING_IDENTIFIER")


async def invalid_identifier_handler(request: Request, exc: InvalidIdentifierError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid identifier: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, exc, "INVALID_IDENTIFIER")


async def not_found_handler(request: Request, exc: NotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Not found: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_404_NOT_FOUND, exc, "NOT_FOUND")


async def lookup_failure_handler(request: Request, exc: LookupFailureError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Mapping store lookup failure: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc, "LOOKUP_FAILURE")


async def archive_unavailable_handler(request: Request, exc: ArchiveUnavailableError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Archive unavailable: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "ARCHIVE_UNAVAILABLE")


async def malformed_archive_handler(request: Request, exc: MalformedArchiveError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Malformed archive: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "MALFORMED_ARCHIVE")


async def invalid_range_handler(request: Request, exc: InvalidRangeError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid range: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(
        RANGE_NOT_SATISFIABLE,
        exc,
        "INVALID_RANGE",
        headers=_unsatisfiable_headers(exc),
    )


async def unsupported_range_handler(request: Request, exc: UnsupportedRangeError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Unsupported range: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(
        RANGE_NOT_SATISFIABLE,
        exc,
        "UNSUPPORTED_RANGE",
        headers=_unsatisfiable_headers(exc),
    )


async def io_failure_handler(request: Request, exc: IOFailureError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Archive read failure: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "IO_FAILURE")


async def retrieval_exception_handler(request: Request, exc: RetrievalError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Retrieval exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INTERNAL_ERROR")


EXCEPTION_HANDLERS = [
    (MissingIdentifierError, missing_identifier_handler),
    (InvalidIdentifierError, invalid_identifier_handler),
    (NotFoundError, not_found_handler),
    (LookupFailureError, lookup_failure_handler),
    (ArchiveUnavailableError, archive_unavailable_handler),
    (MalformedArchiveError, malformed_archive_handler),
    (InvalidRangeError, invalid_range_handler),
    (UnsupportedRangeError, unsupported_range_handler),
    (IOFailureError, io_failure_handler),
    (RetrievalError, retrieval_exception_handler),
]


def create_app(settings: Settings, mapping_store: Optional[MappingStore] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Loaded process settings
        mapping_store: Store to use instead of one opened from settings.database_path

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="carserve",
        description="Serves CAR archives and the blocks inside them with byte-range support",
        version="1.0.0"
    )

    if mapping_store is None:
        mapping_store = MappingStore(settings.database_path)

    app.state.settings = settings
    app.state.mapping_store = mapping_store
    app.state.retrieval_service = RetrievalService(
        mapping_store,
        buffer_size=settings.stream_buffer_size,
    )

    app.middleware("http")(log_requests)

    for exc_class, handler in EXCEPTION_HANDLERS:
        app.add_exception_handler(exc_class, handler)

    app.include_router(health_router)
    app.include_router(piece_router)

    return app


def main() -> None:
    """
    Load configuration and serve the app with uvicorn.

    Missing configuration is fatal: the process exits with status 1.
    """
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(1)

    logger.info(f"Starting carserve on {settings.host}:{settings.port}...")
    logger.info(f"Mapping store: {settings.database_path}")

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
