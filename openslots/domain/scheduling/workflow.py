"""Shared plumbing for booking and lifecycle workflows"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterator, Optional

from sqlalchemy.orm import Session

from ...config import SchedulingConfig
from ...models import Appointment, Service
from .availability_service import AvailabilityService
from .errors import ErrorKind, SchedulingError
from .integration_service import ActivityLogger, CalendarSync
from .locks import ProviderLockRegistry
from .repository import SchedulingRepository
from .time_calculator import local_datetime, time_to_minutes

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def snapshot(appointment: Appointment) -> dict:
    """Loggable view of the fields a lifecycle event can change"""
    return {
        "date": appointment.appointment_date.isoformat() if appointment.appointment_date else None,
        "start_time": appointment.start_time,
        "duration_minutes": appointment.duration_minutes,
        "provider_id": appointment.provider_id,
        "service_id": appointment.service_id,
        "status": appointment.status,
    }


def validate_duration(service: Service, duration_minutes: int) -> None:
    if duration_minutes is None or duration_minutes <= 0:
        raise SchedulingError(ErrorKind.INVALID_DURATION, "Duration must be greater than 0")

    options = service.duration_options or []
    if options and duration_minutes not in options:
        allowed = ", ".join(str(o) for o in options)
        raise SchedulingError(
            ErrorKind.INVALID_DURATION,
            f"{service.name} can be booked for {allowed} minutes, not {duration_minutes}",
        )


class AppointmentWorkflow:
    """Base for services that mutate appointments under the provider lock"""

    def __init__(
        self,
        db: Session,
        repo: SchedulingRepository,
        availability: AvailabilityService,
        config: SchedulingConfig,
        locks: ProviderLockRegistry,
        activity: ActivityLogger,
        calendar: CalendarSync,
        clock: Clock,
    ):
        self.db = db
        self.repo = repo
        self.availability = availability
        self.config = config
        self.locks = locks
        self.activity = activity
        self.calendar = calendar
        self.clock = clock

    def now(self) -> datetime:
        return self.clock()

    def utc_timestamp(self) -> datetime:
        """Naive UTC timestamp for DateTime columns"""
        return self.now().astimezone(timezone.utc).replace(tzinfo=None)

    def start_of(self, day: date, start_time: str) -> datetime:
        return local_datetime(day, time_to_minutes(start_time), self.config.timezone)

    @contextmanager
    def hold_appointment(
        self, appointment: Appointment, new_provider_id: Optional[int] = None
    ) -> Iterator[None]:
        """
        Hold the lock of the appointment's provider (and of ``new_provider_id``)
        with the appointment freshly re-read.

        The provider is read before its lock is taken, so another request may
        move the appointment in between. When the refreshed row belongs to a
        provider whose lock is not held, release and try again.
        """
        while True:
            held = {appointment.provider_id, new_provider_id or appointment.provider_id}
            with self.locks.hold(held):
                self.db.refresh(appointment)
                if appointment.provider_id in held:
                    yield
                    return
            logger.info(
                f"🔁 Appointment {appointment.id} moved to provider {appointment.provider_id}, re-acquiring locks"
            )

    def side_effect(self, description: str, fn: Callable[[], Any], warnings: list[str]) -> Any:
        """
        Run an auxiliary integration after the core record is committed.

        Failures are logged and reported as warnings; the committed mutation stands.
        """
        try:
            return fn()
        except Exception as e:
            logger.error(f"❌ {description} failed: {e}")
            warnings.append(f"{description} failed: {e}")
            return None

    def report(
        self,
        action: str,
        appointment: Appointment,
        previous_value: Optional[dict],
        new_value: Optional[dict],
        note: Optional[str],
        warnings: list[str],
    ) -> None:
        self.side_effect(
            "Activity log",
            lambda: self.activity.log(
                action,
                appointment.id,
                appointment.client_id,
                appointment.provider_id,
                previous_value,
                new_value,
                note,
            ),
            warnings,
        )
