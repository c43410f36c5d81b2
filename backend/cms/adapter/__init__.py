"""Backend store adapters."""
from cms.adapter.base import Adapter, SortBy, Where, eq
from cms.adapter.memory import MemoryAdapter

__all__ = [
    "Adapter",
    "SortBy",
    "Where",
    "eq",
    "MemoryAdapter",
]
