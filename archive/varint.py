"""Unsigned LEB128 varints as used by multiformats and CAR section prefixes."""

from typing import BinaryIO, Optional, Tuple

from common.constants import MAX_VARINT_BYTES


class VarintError(ValueError):
    """Raised for truncated or over-long varints."""
    pass


def encode_varint(value: int) -> bytes:
    if value < 0:
        raise ValueError("varint must be non-negative")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def read_varint(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Decode a varint from a buffer.

    Args:
        data: Buffer holding the varint
        offset: Position of the first varint byte

    Returns:
        (value, position just past the varint)

    Raises:
        VarintError: If the buffer ends mid-varint or it exceeds 9 bytes
    """
    value = 0
    for index in range(MAX_VARINT_BYTES):
        pos = offset + index
        if pos >= len(data):
            raise VarintError(f"truncated varint at offset {offset}")
        byte = data[pos]
        value |= (byte & 0x7F) << (7 * index)
        if not byte & 0x80:
            return value, pos + 1
    raise VarintError(f"varint at offset {offset} exceeds {MAX_VARINT_BYTES} bytes")


def decode_varint(stream: BinaryIO) -> Optional[int]:
    """
    Read one varint from a byte stream.

    Returns None when the stream is already at EOF, which is how a reader
    tells a clean end of archive from a truncated length prefix.
    """
    value = 0
    for index in range(MAX_VARINT_BYTES):
        byte = stream.read(1)
        if not byte:
            if index == 0:
                return None
            raise VarintError("stream ended inside a varint")
        value |= (byte[0] & 0x7F) << (7 * index)
        if not byte[0] & 0x80:
            return value
    raise VarintError(f"varint exceeds {MAX_VARINT_BYTES} bytes")
