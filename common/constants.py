"""Project-wide constants (buffer sizes, archive limits, default ports)."""

STREAM_BUFFER_SIZE: int = 64 * 1024  # 64 KiB per read while streaming a span

MAX_SECTION_SIZE: int = 32 << 20  # largest CAR frame accepted (go-car default)
MAX_VARINT_BYTES: int = 9

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8080

OCTET_STREAM: str = "application/octet-stream"
