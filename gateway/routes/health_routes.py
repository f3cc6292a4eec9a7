"""Service banner, liveness and readiness routes."""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from common.exceptions import LookupFailureError
from gateway.schemas.common import HealthResponse, ReadyResponse

router = APIRouter(tags=["Health"])


@router.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "carserve retrieval API", "status": "running"}


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for container healthchecks.
    Returns 200 if the process is alive.
    """
    return HealthResponse(status="healthy", service="gateway")


@router.get("/ready", response_model=ReadyResponse)
async def ready_check(request: Request):
    """
    Readiness check endpoint.
    Verifies the mapping store can be queried.
    """
    try:
        await run_in_threadpool(request.app.state.mapping_store.ping)
        db_status = "ok"
    except LookupFailureError as e:
        db_status = f"error: {e}"

    ready = db_status == "ok"
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content=ReadyResponse(ready=ready, database=db_status).model_dump(),
    )
