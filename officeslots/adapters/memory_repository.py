"""
In-memory scheduling repository, optionally loaded from a YAML data file.

Stands in for the real persistence layer: it hands the engine read-only
snapshots and enforces the schedule-save rules (valid work periods,
provider membership, one active schedule per provider/office/day).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pendulum
import yaml
from pendulum import DateTime
from pydantic import BaseModel, Field, ValidationError

from ..config import ScheduleDefaults
from ..domain.exceptions import RepositoryError, ScheduleValidationError, UnknownRecordError
from ..domain.records import (
    DEFAULT_APPOINTMENT_DURATION_MINUTES,
    DAYS_OF_WEEK,
    Appointment,
    AppointmentStatus,
    Office,
    OfficeMembership,
    WorkPeriod,
    WorkSchedule,
    manages_office,
)
from ..domain.validation import ensure_valid_schedule

logger = logging.getLogger(__name__)


class InMemorySchedulingRepository:
    """
    Holds offices, memberships, work schedules and appointments in memory.

    Implements ``SchedulingRepositoryProtocol``.
    """

    def __init__(
        self,
        offices: Iterable[Office] = (),
        memberships: Iterable[OfficeMembership] = (),
        work_schedules: Iterable[WorkSchedule] = (),
        appointments: Iterable[Appointment] = (),
    ):
        self._offices: Dict[str, Office] = {}
        self._memberships: List[OfficeMembership] = []
        self._schedules: List[WorkSchedule] = []
        self._appointments: List[Appointment] = []

        for office in offices:
            self.add_office(office)
        for membership in memberships:
            self.add_membership(membership)
        for schedule in work_schedules:
            self.save_work_schedule(schedule)
        for appointment in appointments:
            self.add_appointment(appointment)

    # Offices and memberships

    def add_office(self, office: Office) -> None:
        self._offices[office.id] = office

    def office(self, office_id: str) -> Office:
        try:
            return self._offices[office_id]
        except KeyError:
            raise UnknownRecordError(f"Unknown office: {office_id}") from None

    def add_membership(self, membership: OfficeMembership) -> None:
        self._memberships.append(membership)

    def manages_office(self, user_id: str, office_id: str) -> bool:
        return manages_office(user_id, office_id, self._memberships)

    # Work schedules

    def save_work_schedule(self, schedule: WorkSchedule) -> WorkSchedule:
        """
        Validate and store a schedule.

        An active schedule replaces the previous active one for the same
        provider, office and day.

        Raises:
            UnknownRecordError: If the office does not exist
            ScheduleValidationError: If the schedule is invalid or the
                provider does not work at the office
        """
        self.office(schedule.office_id)
        ensure_valid_schedule(schedule)

        if not self.manages_office(schedule.provider_id, schedule.office_id):
            raise ScheduleValidationError(["provider must work at this office"])

        if schedule.is_active:
            self._schedules = [
                existing for existing in self._schedules
                if not (existing.is_active and existing.key == schedule.key)
            ]

        self._schedules.append(schedule)
        logger.debug("Saved work schedule %s (active=%s)", schedule.key, schedule.is_active)
        return schedule

    def work_schedules_for(self, office_id: str, provider_id: str) -> List[WorkSchedule]:
        return sorted(
            (
                schedule for schedule in self._schedules
                if schedule.is_active
                and schedule.office_id == office_id
                and schedule.provider_id == provider_id
            ),
            key=lambda schedule: schedule.day_of_week,
        )

    def schedules_for_week(
        self,
        office_id: str,
        provider_id: str,
        defaults: Optional[ScheduleDefaults] = None,
    ) -> List[WorkSchedule]:
        """
        Return seven schedules, one per day of week.

        Days without an active schedule get a blank inactive one built from
        the defaults, ready to be edited.
        """
        defaults = defaults or ScheduleDefaults()
        existing = {
            schedule.day_of_week: schedule
            for schedule in self.work_schedules_for(office_id, provider_id)
        }

        week: List[WorkSchedule] = []
        for day_number in DAYS_OF_WEEK.values():
            schedule = existing.get(day_number)
            if schedule is None:
                schedule = WorkSchedule(
                    office_id=office_id,
                    provider_id=provider_id,
                    day_of_week=day_number,
                    work_periods=(defaults.work_period(),),
                    slot_duration_minutes=defaults.slot_duration_minutes,
                    slot_buffer_minutes=defaults.slot_buffer_minutes,
                    is_active=False,
                )
            week.append(schedule)

        return week

    # Appointments

    def add_appointment(self, appointment: Appointment) -> None:
        self._appointments.append(appointment)

    def appointments_for(
        self,
        office_id: str,
        provider_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[Appointment]:
        return sorted(
            (
                appointment for appointment in self._appointments
                if appointment.office_id == office_id
                and appointment.provider_id == provider_id
                and appointment.start < end
                and appointment.end > start
            ),
            key=lambda appointment: appointment.start,
        )

    # Loading

    @classmethod
    def load_from_yaml(cls, data_path: Path, default_timezone: str = "UTC") -> "InMemorySchedulingRepository":
        """
        Load scheduling data from a YAML file.

        Offices without a timezone get ``default_timezone``.

        Raises:
            FileNotFoundError: If the data file doesn't exist
            RepositoryError: If the file is malformed
            ScheduleValidationError: If a stored schedule is invalid
        """
        if not data_path.exists():
            raise FileNotFoundError(f"Data file not found: {data_path}")

        try:
            with open(data_path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise RepositoryError(f"Invalid YAML in {data_path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise RepositoryError("Data file must contain a mapping at the root level.")

        try:
            data = SchedulingData(**raw)
        except ValidationError as exc:
            raise RepositoryError(f"Invalid scheduling data in {data_path}: {exc}") from exc

        return data.build_repository(default_timezone)


# YAML data file schema


class OfficeRecord(BaseModel):
    id: str
    name: str = ""
    timezone: Optional[str] = None


class MembershipRecord(BaseModel):
    user_id: str
    office_id: str
    role: str = "member"
    is_active: bool = True


class WorkPeriodRecord(BaseModel):
    start: str
    end: str


class WorkScheduleRecord(BaseModel):
    office_id: str
    provider_id: str
    day_of_week: int
    work_periods: List[WorkPeriodRecord] = Field(default_factory=list)
    slot_duration_minutes: int = DEFAULT_APPOINTMENT_DURATION_MINUTES
    slot_buffer_minutes: int = 10
    is_active: bool = True


class AppointmentRecord(BaseModel):
    id: Optional[str] = None
    office_id: str
    provider_id: str
    start: str
    duration_minutes: int = DEFAULT_APPOINTMENT_DURATION_MINUTES
    status: AppointmentStatus = AppointmentStatus.PENDING


class SchedulingData(BaseModel):
    """Root of the YAML data file."""
    offices: List[OfficeRecord] = Field(default_factory=list)
    memberships: List[MembershipRecord] = Field(default_factory=list)
    work_schedules: List[WorkScheduleRecord] = Field(default_factory=list)
    appointments: List[AppointmentRecord] = Field(default_factory=list)

    def build_repository(self, default_timezone: str = "UTC") -> InMemorySchedulingRepository:
        repository = InMemorySchedulingRepository(
            offices=(
                Office(id=record.id, name=record.name, timezone=record.timezone or default_timezone)
                for record in self.offices
            ),
            memberships=(OfficeMembership(**record.model_dump()) for record in self.memberships),
            work_schedules=(self._to_schedule(record) for record in self.work_schedules),
        )

        for record in self.appointments:
            repository.add_appointment(self._to_appointment(repository, record))

        return repository

    @staticmethod
    def _to_schedule(record: WorkScheduleRecord) -> WorkSchedule:
        return WorkSchedule(
            office_id=record.office_id,
            provider_id=record.provider_id,
            day_of_week=record.day_of_week,
            work_periods=tuple(WorkPeriod(start=p.start, end=p.end) for p in record.work_periods),
            slot_duration_minutes=record.slot_duration_minutes,
            slot_buffer_minutes=record.slot_buffer_minutes,
            is_active=record.is_active,
        )

    @staticmethod
    def _to_appointment(
        repository: InMemorySchedulingRepository,
        record: AppointmentRecord,
    ) -> Appointment:
        office = repository.office(record.office_id)
        try:
            # Naive timestamps are read as office-local wall time
            start = pendulum.parse(record.start, tz=office.timezone)
        except ValueError as exc:
            raise RepositoryError(
                f"Invalid appointment start {record.start!r}: {exc}"
            ) from exc

        if not isinstance(start, DateTime):
            raise RepositoryError(f"Appointment start must be a date and time, got {record.start!r}")

        return Appointment(
            id=record.id,
            start=start,
            duration_minutes=record.duration_minutes,
            status=record.status,
            office_id=record.office_id,
            provider_id=record.provider_id,
        )
