"""Pydantic schemas for API responses."""

from gateway.schemas.common import ErrorResponse, HealthResponse, ReadyResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "ReadyResponse",
]
