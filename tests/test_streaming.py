"""Tests for bounded span streaming."""

from unittest.mock import MagicMock

import pytest

from common.exceptions import IOFailureError
from common.types import ByteSpan
from gateway.streaming import span_headers, stream_span

DATA = bytes(range(256)) * 40


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "blob.bin"
    path.write_bytes(DATA)
    return path


class TestStreamSpan:

    def test_whole_span(self, data_file):
        handle = open(data_file, "rb")

        pieces = list(stream_span(handle, ByteSpan.whole(len(DATA)), buffer_size=1000))

        assert b"".join(pieces) == DATA
        assert all(len(piece) <= 1000 for piece in pieces)
        assert handle.closed

    def test_partial_span_with_base_offset(self, data_file):
        handle = open(data_file, "rb")
        span = ByteSpan(start=10, end=2009, total_length=5000, partial=True)

        body = b"".join(stream_span(handle, span, base_offset=100, buffer_size=512))

        assert body == DATA[110:2110]
        assert len(body) == span.length

    def test_stops_at_span_end_in_larger_file(self, data_file):
        handle = MagicMock(wraps=open(data_file, "rb"))
        span = ByteSpan(start=0, end=99, total_length=len(DATA), partial=True)

        body = b"".join(stream_span(handle, span, buffer_size=64))

        assert body == DATA[:100]
        requested = sum(call.args[0] for call in handle.read.call_args_list)
        assert requested == 100

    def test_zero_length_span_reads_nothing(self):
        handle = MagicMock()

        assert list(stream_span(handle, ByteSpan.whole(0))) == []
        handle.read.assert_not_called()
        handle.close.assert_called_once()

    def test_file_shorter_than_span(self, data_file):
        handle = open(data_file, "rb")
        span = ByteSpan(start=len(DATA) - 10, end=len(DATA) + 9, total_length=len(DATA) + 10, partial=True)

        with pytest.raises(IOFailureError):
            list(stream_span(handle, span))
        assert handle.closed

    def test_read_error_becomes_io_failure(self):
        handle = MagicMock()
        handle.read.side_effect = OSError("input/output error")

        with pytest.raises(IOFailureError):
            list(stream_span(handle, ByteSpan.whole(10)))
        handle.close.assert_called_once()

    def test_early_close_releases_handle(self, data_file):
        handle = open(data_file, "rb")
        stream = stream_span(handle, ByteSpan.whole(len(DATA)), buffer_size=100)

        assert len(next(stream)) == 100
        stream.close()

        assert handle.closed


class TestSpanHeaders:

    def test_whole_object_has_no_content_range(self):
        headers = span_headers(ByteSpan.whole(1234))

        assert headers["Content-Length"] == "1234"
        assert headers["Accept-Ranges"] == "bytes"
        assert "Content-Range" not in headers

    def test_partial_span(self):
        headers = span_headers(ByteSpan(start=0, end=999, total_length=10_000_000, partial=True))

        assert headers["Content-Length"] == "1000"
        assert headers["Content-Range"] == "bytes 0-999/10000000"
