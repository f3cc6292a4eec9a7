"""Shared data type definitions (ArchiveRecord, ArchiveBlock, ByteSpan, targets)."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from archive.cid import ContentIdentifier


@dataclass(frozen=True)
class ArchiveRecord:
    """
    Association between a root identifier and the sealed archive on disk.
    """
    identifier: str
    file_path: str


@dataclass(frozen=True)
class ArchiveBlock:
    """
    One decoded block frame of an archive.

    offset is the absolute file position of the first payload byte.
    """
    identifier: "ContentIdentifier"
    data: bytes
    offset: int

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ByteSpan:
    """
    Inclusive [start, end] byte range within a resource of total_length bytes.

    partial is False for the whole-object span, which for an empty
    resource is start=0, end=-1.
    """
    start: int
    end: int
    total_length: int
    partial: bool = False

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @classmethod
    def whole(cls, total_length: int) -> "ByteSpan":
        return cls(start=0, end=total_length - 1, total_length=total_length)

    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.total_length}"


@dataclass(frozen=True)
class RootTarget:
    """Serve the whole archive file as an opaque blob."""
    identifier: str


@dataclass(frozen=True)
class BlockTarget:
    """Serve the payload of one addressed block inside the archive."""
    identifier: str
    block: "ContentIdentifier"


@dataclass(frozen=True)
class FirstBlockTarget:
    """Serve the payload of the first block, whatever its identifier."""
    identifier: str


RetrievalTarget = Union[RootTarget, BlockTarget, FirstBlockTarget]
