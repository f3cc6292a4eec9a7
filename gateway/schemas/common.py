"""Common schemas used across endpoints."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    code: str


class HealthResponse(BaseModel):
    """Response model for the liveness check."""
    status: str
    service: str


class ReadyResponse(BaseModel):
    """Response model for the readiness check."""
    ready: bool
    database: str
