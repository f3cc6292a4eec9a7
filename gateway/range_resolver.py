"""Resolve an HTTP Range header against a resource length."""

import re
from typing import Optional

from common.exceptions import InvalidRangeError, UnsupportedRangeError
from common.types import ByteSpan

_DIGITS = re.compile(r"[0-9]+")


def _position(digits: str, total_length: int) -> int:
    """Value of a digit run, capped at total_length so huge values never reach int()."""
    digits = digits.lstrip("0") or "0"
    if len(digits) > len(str(total_length)):
        return total_length
    return min(int(digits), total_length)


def resolve_range(header: Optional[str], total_length: int) -> ByteSpan:
    """
    Compute the span to serve for a Range header.

    Accepts "bytes=<start>-<end>" and "bytes=<start>-". An end past the
    resource is clamped to the last byte.

    Args:
        header: Raw Range header value, or None
        total_length: Size of the resource in bytes

    Returns:
        Partial ByteSpan, or the whole-object span when no header is given

    Raises:
        UnsupportedRangeError: For comma-separated multi-range expressions
        InvalidRangeError: For malformed or unsatisfiable expressions
    """
    if header is None or not header.strip():
        return ByteSpan.whole(total_length)

    unit, sep, ranges = header.strip().partition("=")
    if not sep or unit.strip().lower() != "bytes":
        raise InvalidRangeError(f"Unsupported range unit in {header!r}", total_length)

    if "," in ranges:
        raise UnsupportedRangeError(f"Multiple ranges are not supported: {header!r}", total_length)

    start_text, dash, end_text = ranges.strip().partition("-")
    start_text = start_text.strip()
    end_text = end_text.strip()

    if not dash or not _DIGITS.fullmatch(start_text):
        raise InvalidRangeError(f"Range start must be a non-negative integer: {header!r}", total_length)

    start = _position(start_text, total_length)
    last = total_length - 1

    if end_text:
        if not _DIGITS.fullmatch(end_text):
            raise InvalidRangeError(f"Range end must be a non-negative integer: {header!r}", total_length)
        end = min(_position(end_text, total_length), last)
    else:
        end = last

    if start > end:
        raise InvalidRangeError(
            f"Range {header!r} not satisfiable for {total_length} bytes", total_length
        )

    return ByteSpan(start=start, end=end, total_length=total_length, partial=True)
