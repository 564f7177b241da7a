"""
Service layer helpers that orchestrate repositories and domain logic.
"""

from .weekly_availability import (
    SchedulingRepositoryProtocol,
    WeeklyAvailability,
    WeeklyAvailabilityCalculator,
)

__all__ = ["SchedulingRepositoryProtocol", "WeeklyAvailability", "WeeklyAvailabilityCalculator"]
