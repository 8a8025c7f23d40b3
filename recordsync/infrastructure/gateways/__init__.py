"""Record gateway infrastructure package."""

from .in_memory_gateway import InMemoryRecordGateway

__all__ = ["InMemoryRecordGateway"]
