"""
Lifecycle Service
Applies status transitions to stored appointments: confirm, check-in,
no-show, cancel, reschedule and complete
"""

import logging
from typing import Callable, Optional

from ...models import Appointment
from ..clients.history import record_completed_visit, record_no_show
from .errors import ErrorKind, SchedulingError
from .lifecycle import AppointmentStatus, check_in_window, no_show_window, require_transition
from .schemas import RescheduleRequest
from .time_calculator import minutes_to_time, parse_date, time_to_minutes
from .workflow import AppointmentWorkflow, snapshot, validate_duration

logger = logging.getLogger(__name__)


class LifecycleService(AppointmentWorkflow):
    """Service layer for appointment state changes"""

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment(appointment_id)
        if not appointment:
            raise SchedulingError(ErrorKind.NOT_FOUND, f"Appointment {appointment_id} not found")
        return appointment

    def _get_client(self, appointment: Appointment):
        client = self.repo.get_client(appointment.client_id)
        if not client:
            raise SchedulingError(ErrorKind.NOT_FOUND, f"Client {appointment.client_id} not found")
        return client

    def _transition(
        self,
        appointment_id: int,
        target: AppointmentStatus,
        action: str,
        guard: Optional[Callable[[Appointment], None]] = None,
        apply: Optional[Callable[[Appointment], None]] = None,
        note: Optional[str] = None,
    ) -> tuple[Appointment, list[str]]:
        """
        Check the transition table and guard, then apply and commit under the provider lock.
        Nothing is written unless every check passes.
        """
        appointment = self.get_appointment(appointment_id)

        with self.hold_appointment(appointment):
            previous_status = appointment.status

            require_transition(previous_status, target)
            if guard:
                guard(appointment)
            if apply:
                apply(appointment)
            appointment.status = target.value
            self.db.commit()

        logger.info(f"✅ Appointment {appointment.id}: {previous_status} → {target.value}")

        warnings: list[str] = []
        self.report(action, appointment, {"status": previous_status}, {"status": target.value}, note, warnings)
        return appointment, warnings

    def confirm(self, appointment_id: int) -> tuple[Appointment, list[str]]:
        return self._transition(appointment_id, AppointmentStatus.CONFIRMED, "confirm")

    def check_in(self, appointment_id: int) -> tuple[Appointment, list[str]]:
        """Allowed from one hour before the start until 30 minutes after it (configurable)"""

        def guard(appointment: Appointment) -> None:
            check_in_window(
                self.start_of(appointment.appointment_date, appointment.start_time),
                self.now(),
                self.config.check_in_opens_minutes,
                self.config.check_in_closes_minutes,
            )

        return self._transition(appointment_id, AppointmentStatus.CHECKED_IN, "check_in", guard=guard)

    def mark_no_show(self, appointment_id: int) -> tuple[Appointment, list[str]]:
        """Allowed once the check-in grace period after the start has passed"""

        def guard(appointment: Appointment) -> None:
            no_show_window(
                self.start_of(appointment.appointment_date, appointment.start_time),
                self.now(),
                self.config.no_show_grace_minutes,
            )

        def apply(appointment: Appointment) -> None:
            count = record_no_show(self._get_client(appointment))
            logger.info(f"📉 Client {appointment.client_id} no-show count is now {count}")

        return self._transition(
            appointment_id, AppointmentStatus.NO_SHOW, "no_show", guard=guard, apply=apply
        )

    def complete(self, appointment_id: int) -> tuple[Appointment, list[str]]:
        def apply(appointment: Appointment) -> None:
            record_completed_visit(self._get_client(appointment), appointment.appointment_date)

        return self._transition(appointment_id, AppointmentStatus.COMPLETED, "complete", apply=apply)

    def cancel(self, appointment_id: int, reason: Optional[str] = None) -> tuple[Appointment, list[str]]:
        """Cancel and unlink the calendar event; the event itself is deleted after commit"""
        cleared = {}

        def apply(appointment: Appointment) -> None:
            cleared["event_id"] = appointment.calendar_event_id
            appointment.calendar_event_id = None
            appointment.cancellation_reason = reason

        appointment, warnings = self._transition(
            appointment_id, AppointmentStatus.CANCELLED, "cancel", apply=apply, note=reason
        )

        event_id = cleared.get("event_id")
        if event_id:
            self.side_effect(
                "Calendar event deletion", lambda: self.calendar.delete_event(event_id), warnings
            )
        return appointment, warnings

    def reschedule(self, appointment_id: int, request: RescheduleRequest) -> tuple[Appointment, list[str]]:
        """
        Move an appointment in place to a new date, time, provider, service or duration.

        Provider/service compatibility is checked before availability; the
        appointment's own current booking never counts as a conflict.
        """
        changes = request.model_dump(exclude={"reason"}, exclude_none=True)
        if not changes:
            raise SchedulingError(ErrorKind.MISSING_FIELD, "Nothing to reschedule: supply at least one new value")

        appointment = self.get_appointment(appointment_id)

        with self.hold_appointment(appointment, request.new_provider_id):
            target_provider_id = request.new_provider_id or appointment.provider_id
            require_transition(appointment.status, AppointmentStatus.RESCHEDULED)

            service_id = request.new_service_id or appointment.service_id
            service = self.repo.get_service(service_id)
            if not service:
                raise SchedulingError(ErrorKind.NOT_FOUND, f"Service {service_id} not found")

            if request.new_provider_id is not None or request.new_service_id is not None:
                provider = self.repo.get_provider(target_provider_id)
                if not provider:
                    raise SchedulingError(ErrorKind.NOT_FOUND, f"Provider {target_provider_id} not found")
                if not provider.is_active or service.id not in provider.service_ids:
                    raise SchedulingError(
                        ErrorKind.SERVICE_NOT_OFFERED,
                        f"{provider.name} does not offer {service.name}",
                    )

            day = (
                parse_date(request.new_date, self.config.timezone)
                if request.new_date is not None
                else appointment.appointment_date
            )
            start_time = (
                minutes_to_time(time_to_minutes(request.new_start_time))
                if request.new_start_time is not None
                else appointment.start_time
            )
            duration = request.new_duration if request.new_duration is not None else appointment.duration_minutes

            if request.new_duration is not None or request.new_service_id is not None:
                validate_duration(service, duration)

            if self.start_of(day, start_time) < self.now():
                raise SchedulingError(ErrorKind.PAST_DATE_TIME, f"{day} {start_time} is in the past")

            if not self.availability.is_slot_available(
                target_provider_id, day, start_time, duration, exclude_appointment_id=appointment.id
            ):
                raise SchedulingError(
                    ErrorKind.SLOT_UNAVAILABLE,
                    f"Provider {target_provider_id} is not available on {day} at {start_time} "
                    f"for {duration} minutes",
                )

            previous = snapshot(appointment)
            self.repo.update_appointment(
                appointment,
                appointment_date=day,
                start_time=start_time,
                duration_minutes=duration,
                provider_id=target_provider_id,
                service_id=service.id,
                status=AppointmentStatus.RESCHEDULED.value,
                reschedule_count=(appointment.reschedule_count or 0) + 1,
            )
            self.db.commit()

        logger.info(
            f"🔁 Appointment {appointment.id} rescheduled from {previous['date']} {previous['start_time']} "
            f"to {day} {start_time}"
        )

        warnings: list[str] = []
        self.report("reschedule", appointment, previous, snapshot(appointment), request.reason, warnings)

        if appointment.calendar_event_id:
            event_id = appointment.calendar_event_id
            self.side_effect(
                "Calendar event update", lambda: self.calendar.update_event(event_id, appointment), warnings
            )
        return appointment, warnings
