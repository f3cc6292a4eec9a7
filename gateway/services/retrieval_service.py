"""Retrieval orchestration: identifier -> archive -> span -> stream."""

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Dict, Iterator, Optional, Tuple

from archive.car_reader import CarReader
from archive.cid import ContentIdentifier
from common.constants import STREAM_BUFFER_SIZE
from common.exceptions import (
    ArchiveUnavailableError,
    IOFailureError,
    MissingIdentifierError,
    NotFoundError,
)
from common.types import (
    ArchiveRecord,
    BlockTarget,
    ByteSpan,
    FirstBlockTarget,
    RetrievalTarget,
    RootTarget,
)
from gateway.range_resolver import resolve_range
from gateway.repositories.mapping_store import MappingStore
from gateway.streaming import span_headers, stream_span

logger = logging.getLogger(__name__)


def parse_target(
    identifier: Optional[str],
    block: Optional[str] = None,
    first_block: bool = False,
) -> RetrievalTarget:
    """
    Build the retrieval target for a request.

    Args:
        identifier: Root identifier from the request path
        block: Block CID text, for block mode
        first_block: Serve the first block regardless of its identifier

    Raises:
        MissingIdentifierError: If the root identifier is empty
        InvalidIdentifierError: If the block CID cannot be parsed
    """
    identifier = (identifier or "").strip()
    if not identifier:
        raise MissingIdentifierError("Root CID is required")

    if block is not None:
        if not block.strip():
            raise MissingIdentifierError("Block CID is required")
        return BlockTarget(identifier=identifier, block=ContentIdentifier.parse(block))
    if first_block:
        return FirstBlockTarget(identifier=identifier)
    return RootTarget(identifier=identifier)


@dataclass
class PreparedRetrieval:
    """
    An opened archive and the span of it to send.

    Owns handle until it is streamed or closed.
    """
    record: ArchiveRecord
    handle: BinaryIO
    span: ByteSpan
    base_offset: int = 0
    block: Optional[ContentIdentifier] = None

    @property
    def status_code(self) -> int:
        return 206 if self.span.partial else 200

    @property
    def headers(self) -> Dict[str, str]:
        return span_headers(self.span)

    def close(self) -> None:
        self.handle.close()


class RetrievalService:
    def __init__(self, mapping_store: MappingStore, buffer_size: int = STREAM_BUFFER_SIZE):
        self.mapping_store = mapping_store
        self.buffer_size = buffer_size

    def prepare(self, target: RetrievalTarget, range_header: Optional[str] = None) -> PreparedRetrieval:
        """
        Run every step up to streaming: lookup, open, locate, resolve range.

        Nothing is sent to the client here, so every failure can still become
        an error response. The archive handle is closed on any failure.

        Raises:
            NotFoundError, LookupFailureError, ArchiveUnavailableError,
            MalformedArchiveError, InvalidRangeError, UnsupportedRangeError,
            IOFailureError
        """
        record = self.mapping_store.lookup(target.identifier)
        logger.info(f"Found archive for CID {target.identifier}: {record.file_path}")

        handle = self._open(record)
        try:
            base_offset, length, block = self._locate(target, record, handle)
            span = resolve_range(range_header, length)
        except Exception:
            handle.close()
            raise

        logger.info(
            f"Serving {span.length} bytes of {target.identifier} "
            f"(status={206 if span.partial else 200}, range={span.content_range()})"
        )
        return PreparedRetrieval(
            record=record,
            handle=handle,
            span=span,
            base_offset=base_offset,
            block=block,
        )

    def stream(self, prepared: PreparedRetrieval) -> Iterator[bytes]:
        return stream_span(
            prepared.handle,
            prepared.span,
            base_offset=prepared.base_offset,
            buffer_size=self.buffer_size,
        )

    def _open(self, record: ArchiveRecord) -> BinaryIO:
        try:
            return open(record.file_path, "rb")
        except OSError as e:
            logger.error(f"Failed to open archive {record.file_path}: {e}")
            raise ArchiveUnavailableError(f"Archive for {record.identifier} is unavailable") from e

    def _locate(
        self,
        target: RetrievalTarget,
        record: ArchiveRecord,
        handle: BinaryIO,
    ) -> Tuple[int, int, Optional[ContentIdentifier]]:
        """
        Find the resource inside the archive.

        Returns:
            (file offset of the resource, resource length, block CID or None)
        """
        if isinstance(target, RootTarget):
            try:
                size = os.fstat(handle.fileno()).st_size
            except OSError as e:
                raise IOFailureError(f"Failed to stat archive {record.file_path}: {e}") from e
            return 0, size, None

        reader = CarReader(handle)
        if isinstance(target, BlockTarget):
            block = reader.find_block(target.block)
            if block is None:
                raise NotFoundError(f"Block {target.block} not found in archive for {target.identifier}")
        elif isinstance(target, FirstBlockTarget):
            block = reader.first_block()
            if block is None:
                raise NotFoundError(f"Archive for {target.identifier} contains no blocks")
        else:
            raise TypeError(f"Unknown retrieval target {target!r}")

        logger.info(
            f"Located block {block.identifier} (v{block.identifier.version}, "
            f"codec=0x{block.identifier.codec:x}, {block.size} bytes) "
            f"at offset {block.offset} in {record.file_path}"
        )
        return block.offset, block.size, block.identifier
