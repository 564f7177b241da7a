"""
Domain layer - pure scheduling logic, no I/O.
"""

from .availability import AvailabilityService, PeriodSubtractor, subtract_periods
from .exceptions import (
    CalculationError,
    ConfigError,
    OfficeSlotsError,
    RepositoryError,
    ScheduleValidationError,
    UnknownRecordError,
)
from .models import AvailableSlot, SlotConfiguration, SlotStatus, TimePeriod
from .overlap import OverlapChecker, contains, overlaps
from .records import (
    Appointment,
    AppointmentStatus,
    BlockingPolicy,
    Office,
    OfficeMembership,
    WorkPeriod,
    WorkSchedule,
    manages_office,
)
from .slot_generator import SlotGenerator, generate_slots
from .work_schedule_calculator import WorkScheduleCalculator

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AvailabilityService",
    "AvailableSlot",
    "BlockingPolicy",
    "CalculationError",
    "ConfigError",
    "Office",
    "OfficeMembership",
    "OfficeSlotsError",
    "OverlapChecker",
    "PeriodSubtractor",
    "RepositoryError",
    "ScheduleValidationError",
    "SlotConfiguration",
    "SlotGenerator",
    "SlotStatus",
    "TimePeriod",
    "UnknownRecordError",
    "WorkPeriod",
    "WorkSchedule",
    "WorkScheduleCalculator",
    "contains",
    "generate_slots",
    "manages_office",
    "overlaps",
    "subtract_periods",
]
