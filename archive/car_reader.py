"""Lazy reader for CARv1 archives.

A CARv1 file is a sequence of sections, each an unsigned varint length
followed by that many bytes. The first section is the DAG-CBOR header;
every following section is a block: a binary CID immediately followed by
the block payload.
"""

import logging
from typing import BinaryIO, Iterator, Optional, Tuple

from archive.cid import ContentIdentifier
from archive.varint import VarintError, decode_varint
from common.constants import MAX_SECTION_SIZE
from common.exceptions import IOFailureError, MalformedArchiveError
from common.types import ArchiveBlock

logger = logging.getLogger(__name__)

# Header section of a CARv2 file: {"version": 2} as DAG-CBOR
CARV2_PRAGMA_HEADER = bytes.fromhex("a16776657273696f6e02")


class CarReader:
    """
    Decodes blocks from a seekable CAR byte stream on demand.

    Each call to blocks() restarts from offset 0 and reads only as many
    sections as the caller consumes.
    """

    def __init__(self, stream: BinaryIO, max_section_size: int = MAX_SECTION_SIZE):
        self._stream = stream
        self._max_section_size = max_section_size

    def __iter__(self) -> Iterator[ArchiveBlock]:
        return self.blocks()

    def blocks(self, limit: Optional[int] = None) -> Iterator[ArchiveBlock]:
        """
        Yield block frames in archive order.

        Args:
            limit: Stop after this many blocks (None reads to the end)

        Raises:
            MalformedArchiveError: If the archive breaks the framing rules
            IOFailureError: If the underlying stream fails
        """
        self._rewind()
        self._skip_header()

        yielded = 0
        while limit is None or yielded < limit:
            section = self._read_section()
            if section is None:
                return
            offset, data = section
            try:
                cid, payload_start = ContentIdentifier.decode(data)
            except ValueError as e:
                raise MalformedArchiveError(
                    f"Invalid block CID in section at offset {offset}: {e}"
                ) from e
            yield ArchiveBlock(
                identifier=cid,
                data=data[payload_start:],
                offset=offset + payload_start,
            )
            yielded += 1

    def first_block(self) -> Optional[ArchiveBlock]:
        return next(self.blocks(limit=1), None)

    def find_block(self, cid: ContentIdentifier) -> Optional[ArchiveBlock]:
        """
        Return the first block whose identifier equals cid, or None when the
        archive ends without a match.
        """
        for block in self.blocks():
            if block.identifier == cid:
                return block
        return None

    def _rewind(self) -> None:
        try:
            self._stream.seek(0)
        except OSError as e:
            raise IOFailureError(f"Failed to rewind archive stream: {e}") from e

    def _skip_header(self) -> None:
        section = self._read_section()
        if section is None:
            raise MalformedArchiveError("Archive is empty")
        _, header = section
        if header == CARV2_PRAGMA_HEADER:
            raise MalformedArchiveError("CARv2 archives are not supported")
        # DAG-CBOR map: major type 5
        if header[0] >> 5 != 5:
            raise MalformedArchiveError("Archive header is not a CBOR map")

    def _read_section(self) -> Optional[Tuple[int, bytes]]:
        """
        Read one length-prefixed section.

        Returns:
            (offset of the section body, body bytes), or None at a clean EOF
        """
        try:
            length = decode_varint(self._stream)
            if length is None:
                return None
            offset = self._stream.tell()
            if length == 0:
                raise MalformedArchiveError(f"Zero-length section at offset {offset}")
            if length > self._max_section_size:
                raise MalformedArchiveError(
                    f"Section at offset {offset} declares {length} bytes, "
                    f"limit is {self._max_section_size}"
                )
            data = self._stream.read(length)
        except VarintError as e:
            raise MalformedArchiveError(f"Truncated section length prefix: {e}") from e
        except OSError as e:
            raise IOFailureError(f"Failed to read archive: {e}") from e

        if len(data) < length:
            raise MalformedArchiveError(
                f"Section at offset {offset} declares {length} bytes "
                f"but only {len(data)} remain"
            )
        logger.debug(f"Read section offset={offset} length={length}")
        return offset, data
