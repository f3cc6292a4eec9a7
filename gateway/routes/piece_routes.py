"""Piece retrieval API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from common.constants import OCTET_STREAM
from common.exceptions import MissingIdentifierError
from common.types import RetrievalTarget
from gateway.schemas.common import ErrorResponse
from gateway.services.retrieval_service import RetrievalService, parse_target

router = APIRouter(prefix="/piece", tags=["Retrieval"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    416: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def get_retrieval_service(request: Request) -> RetrievalService:
    return request.app.state.retrieval_service


async def _serve(
    service: RetrievalService,
    target: RetrievalTarget,
    range_header: Optional[str],
) -> StreamingResponse:
    prepared = await run_in_threadpool(service.prepare, target, range_header)

    return StreamingResponse(
        service.stream(prepared),
        status_code=prepared.status_code,
        media_type=OCTET_STREAM,
        headers=prepared.headers,
        background=BackgroundTask(prepared.close),
    )


@router.get("/", include_in_schema=False)
async def missing_identifier():
    raise MissingIdentifierError("Root CID is required")


@router.get("/{root_cid}", responses=ERROR_RESPONSES)
async def retrieve_archive(
    root_cid: str,
    range_header: Optional[str] = Header(default=None, alias="Range"),
    service: RetrievalService = Depends(get_retrieval_service),
):
    """
    Stream the sealed archive mapped to a root CID.

    Parameters:
        - root_cid: Root identifier of the archive
        - Range header: Optional "bytes=<start>-[<end>]"

    Returns:
        - 200 with the whole archive, or 206 with the requested span

    Raises:
        - 400: Missing identifier
        - 404: No archive mapped to the CID
        - 416: Invalid or multi-range Range header
        - 500: Archive unavailable or unreadable
        - 503: Mapping store unavailable
    """
    return await _serve(service, parse_target(root_cid), range_header)


@router.get("/{root_cid}/blocks/{block_cid}", responses=ERROR_RESPONSES)
async def retrieve_block(
    root_cid: str,
    block_cid: str,
    range_header: Optional[str] = Header(default=None, alias="Range"),
    service: RetrievalService = Depends(get_retrieval_service),
):
    """
    Stream the payload of one block inside the archive mapped to a root CID.

    Parameters:
        - root_cid: Root identifier of the archive
        - block_cid: CID of the block to serve (any multibase text form)
        - Range header: Optional, resolved against the block payload length

    Raises:
        - 400: Missing or unparsable CID
        - 404: No archive mapped, or block absent from the archive
        - 416: Invalid or multi-range Range header
        - 500: Archive unavailable or malformed
        - 503: Mapping store unavailable
    """
    target = parse_target(root_cid, block=block_cid)
    return await _serve(service, target, range_header)


@router.get("/{root_cid}/first-block", responses=ERROR_RESPONSES)
async def retrieve_first_block(
    root_cid: str,
    range_header: Optional[str] = Header(default=None, alias="Range"),
    service: RetrievalService = Depends(get_retrieval_service),
):
    """
    Stream the payload of the first block in the archive, whatever its CID.

    Intended for archives known to hold a single addressable block.
    """
    target = parse_target(root_cid, first_block=True)
    return await _serve(service, target, range_header)
