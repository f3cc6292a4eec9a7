"""Service layer for business logic."""

from gateway.services.retrieval_service import PreparedRetrieval, RetrievalService, parse_target

__all__ = [
    "PreparedRetrieval",
    "RetrievalService",
    "parse_target",
]
