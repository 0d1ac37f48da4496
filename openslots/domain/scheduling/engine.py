"""
Scheduling Engine
Single entry point for availability queries and appointment mutations.

Every operation returns an OperationResult. Validation failures come back as
``success=False`` with an error kind; storage and lock problems raise
``SchedulingFault`` because their outcome cannot be reported as a plain no.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...cache import Cache
from ...config import SchedulingConfig
from ...models import Appointment
from .availability_service import AvailabilityService
from .booking_service import BookingService
from .errors import ErrorKind, SchedulingError, StorageUnavailable
from .integration_service import ActivityLogger, CalendarSync, NullCalendarSync
from .lifecycle_service import LifecycleService
from .locks import ProviderLockRegistry, get_provider_locks
from .repository import SchedulingRepository
from .schemas import AppointmentResponse, BookingRequest, OperationResult, RescheduleRequest
from .time_calculator import get_zone, minutes_to_time, parse_date, time_to_minutes
from .workflow import Clock

logger = logging.getLogger(__name__)


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    end = time_to_minutes(appointment.start_time) + appointment.duration_minutes
    return AppointmentResponse(
        id=appointment.id,
        client_id=appointment.client_id,
        provider_id=appointment.provider_id,
        service_id=appointment.service_id,
        appointment_date=appointment.appointment_date,
        start_time=appointment.start_time,
        end_time=minutes_to_time(end),
        duration_minutes=appointment.duration_minutes,
        status=appointment.status,
        notes=appointment.notes,
        cancellation_reason=appointment.cancellation_reason,
        reschedule_count=appointment.reschedule_count or 0,
        calendar_event_id=appointment.calendar_event_id,
        created_at=appointment.created_at,
    )


class SchedulingEngine:
    """Facade over availability, booking and lifecycle services"""

    def __init__(
        self,
        db: Session,
        config: SchedulingConfig,
        activity: ActivityLogger,
        calendar: Optional[CalendarSync] = None,
        locks: Optional[ProviderLockRegistry] = None,
        cache: Optional[Cache] = None,
        clock: Optional[Clock] = None,
    ):
        self.db = db
        self.config = config
        self.clock = clock or (lambda: datetime.now(get_zone(config.timezone)))

        self.repo = SchedulingRepository(db, cache, config.cache_ttl_seconds)
        self.availability = AvailabilityService(self.repo, config)

        workflow_args = (
            db,
            self.repo,
            self.availability,
            config,
            locks or get_provider_locks(),
            activity,
            calendar or NullCalendarSync(),
            self.clock,
        )
        self.booking = BookingService(*workflow_args)
        self.lifecycle = LifecycleService(*workflow_args)

    def _execute(self, operation: str, fn: Callable[[], Any]) -> OperationResult:
        """Run an operation and translate its outcome into an OperationResult"""
        try:
            result = fn()
        except SchedulingError as e:
            self.db.rollback()
            logger.warning(f"⚠️ {operation} rejected ({e.kind.value}): {e.message}")
            return OperationResult.fail(e.kind.value, e.message)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ {operation} failed on storage: {e}")
            raise StorageUnavailable(f"{operation} could not reach storage") from e

        if isinstance(result, OperationResult):
            return result
        return OperationResult.ok(result)

    def _appointment_result(self, outcome: tuple[Appointment, list[str]]) -> OperationResult:
        appointment, warnings = outcome
        return OperationResult.ok(to_appointment_response(appointment), warnings)

    # ============================================================================
    # AVAILABILITY
    # ============================================================================

    def resolve_availability(
        self,
        provider_id: int,
        day: Union[str, date],
        slot_granularity_minutes: Optional[int] = None,
    ) -> OperationResult:
        return self._execute(
            "Availability lookup",
            lambda: self.availability.resolve_availability(provider_id, day, slot_granularity_minutes),
        )

    def is_slot_available(
        self,
        provider_id: int,
        day: Union[str, date],
        start_time: str,
        duration_minutes: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> OperationResult:
        return self._execute(
            "Slot check",
            lambda: self.availability.is_slot_available(
                provider_id, day, start_time, duration_minutes, exclude_appointment_id
            ),
        )

    # ============================================================================
    # BOOKING
    # ============================================================================

    def _coerce(self, model, request):
        if not isinstance(request, dict):
            return request
        try:
            return model(**request)
        except ValidationError as e:
            raise SchedulingError(ErrorKind.INVALID_FORMAT, f"Malformed request: {e.errors()[0]['msg']}") from e

    def book_appointment(self, request: Union[BookingRequest, dict]) -> OperationResult:
        def run() -> OperationResult:
            appointment, warnings = self.booking.book(self._coerce(BookingRequest, request))
            return OperationResult.ok(
                {"appointment_id": appointment.id, "appointment": to_appointment_response(appointment)},
                warnings,
            )

        return self._execute("Booking", run)

    # ============================================================================
    # LIFECYCLE
    # ============================================================================

    def confirm(self, appointment_id: int) -> OperationResult:
        return self._execute(
            "Confirm", lambda: self._appointment_result(self.lifecycle.confirm(appointment_id))
        )

    def check_in(self, appointment_id: int) -> OperationResult:
        return self._execute(
            "Check-in", lambda: self._appointment_result(self.lifecycle.check_in(appointment_id))
        )

    def mark_no_show(self, appointment_id: int) -> OperationResult:
        return self._execute(
            "No-show", lambda: self._appointment_result(self.lifecycle.mark_no_show(appointment_id))
        )

    def complete(self, appointment_id: int) -> OperationResult:
        return self._execute(
            "Complete", lambda: self._appointment_result(self.lifecycle.complete(appointment_id))
        )

    def cancel(self, appointment_id: int, reason: Optional[str] = None) -> OperationResult:
        return self._execute(
            "Cancel", lambda: self._appointment_result(self.lifecycle.cancel(appointment_id, reason))
        )

    def reschedule(self, appointment_id: int, request: Union[RescheduleRequest, dict]) -> OperationResult:
        return self._execute(
            "Reschedule",
            lambda: self._appointment_result(
                self.lifecycle.reschedule(appointment_id, self._coerce(RescheduleRequest, request))
            ),
        )

    # ============================================================================
    # QUERIES
    # ============================================================================

    def get_appointment(self, appointment_id: int) -> OperationResult:
        return self._execute(
            "Appointment lookup",
            lambda: to_appointment_response(self.lifecycle.get_appointment(appointment_id)),
        )

    def list_appointments(
        self, provider_id: int, day: Union[str, date], status: Optional[str] = None
    ) -> OperationResult:
        """A provider's day sheet, including cancelled and completed appointments"""

        def run() -> list[AppointmentResponse]:
            if not self.repo.get_provider(provider_id):
                raise SchedulingError(ErrorKind.PROVIDER_NOT_FOUND, f"Provider {provider_id} not found")
            target = parse_date(day, self.config.timezone)
            return [to_appointment_response(a) for a in self.repo.list_appointments(provider_id, target, status)]

        return self._execute("Appointment list", run)
