"""Copy a byte span of an open archive to the response in bounded pieces."""

import logging
from typing import BinaryIO, Dict, Iterator

from common.constants import STREAM_BUFFER_SIZE
from common.exceptions import IOFailureError
from common.types import ByteSpan

logger = logging.getLogger(__name__)


def span_headers(span: ByteSpan) -> Dict[str, str]:
    """
    Transport headers for a span: Content-Length always, Content-Range
    only for partial spans.
    """
    headers = {
        "Accept-Ranges": "bytes",
        "Content-Length": str(span.length),
    }
    if span.partial:
        headers["Content-Range"] = span.content_range()
    return headers


def stream_span(
    handle: BinaryIO,
    span: ByteSpan,
    base_offset: int = 0,
    buffer_size: int = STREAM_BUFFER_SIZE,
) -> Iterator[bytes]:
    """
    Yield exactly span.length bytes starting at base_offset + span.start.

    The handle is closed when the generator finishes, fails or is closed
    early. Failures surface once headers are already committed, so they are
    logged and re-raised to abort the connection.

    Args:
        handle: Open, seekable archive file
        span: Resolved span, relative to the served resource
        base_offset: File position of the resource's first byte
        buffer_size: Upper bound on bytes read per step

    Yields:
        Pieces of at most buffer_size bytes

    Raises:
        IOFailureError: If reading fails or the file ends before the span does
    """
    remaining = span.length
    sent = 0

    try:
        if remaining <= 0:
            return

        handle.seek(base_offset + span.start)
        while remaining > 0:
            piece = handle.read(min(buffer_size, remaining))
            if not piece:
                logger.error(
                    f"Archive ended early: sent {sent}/{span.length} bytes "
                    f"of {span.content_range()}"
                )
                raise IOFailureError(f"Archive ended after {sent} of {span.length} bytes")
            remaining -= len(piece)
            sent += len(piece)
            yield piece

        logger.debug(f"Streamed {sent} bytes ({span.content_range()})")
    except GeneratorExit:
        logger.info(f"Stream closed by client after {sent}/{span.length} bytes")
        raise
    except OSError as e:
        logger.error(f"Read failed after {sent}/{span.length} bytes: {e}", exc_info=True)
        raise IOFailureError(f"Failed to read archive: {e}") from e
    finally:
        handle.close()
