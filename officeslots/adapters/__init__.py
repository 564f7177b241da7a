"""
Adapters layer - Data access implementations.
"""

from .memory_repository import InMemorySchedulingRepository, SchedulingData

__all__ = ["InMemorySchedulingRepository", "SchedulingData"]
