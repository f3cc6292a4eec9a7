"""Repository layer for data access."""

from gateway.repositories.mapping_store import MappingStore

__all__ = [
    "MappingStore",
]
