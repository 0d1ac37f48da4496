"""
Booking Service
Validates a booking request against business rules and live availability,
then commits the appointment and client history as one unit
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from ...models import Appointment
from ..clients.history import record_booking
from .errors import ErrorKind, SchedulingError
from .lifecycle import AppointmentStatus
from .schemas import BookingRequest
from .time_calculator import minutes_to_time, parse_date, time_to_minutes
from .workflow import AppointmentWorkflow, snapshot, validate_duration

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("client_id", "provider_id", "service_id", "date", "start_time", "duration_minutes")


class BookingService(AppointmentWorkflow):
    """Service layer for new bookings"""

    def book(self, request: BookingRequest) -> tuple[Appointment, list[str]]:
        """
        Validate and commit a booking. The first failed check wins:
        missing fields, unknown records, service not offered, past time,
        invalid duration, slot unavailable.
        """
        missing = [f for f in REQUIRED_FIELDS if getattr(request, f) in (None, "")]
        if missing:
            raise SchedulingError(ErrorKind.MISSING_FIELD, f"Missing required fields: {', '.join(missing)}")

        day = parse_date(request.date, self.config.timezone)
        start_time = minutes_to_time(time_to_minutes(request.start_time))

        logger.info(
            f"📅 Booking request: client {request.client_id} with provider {request.provider_id} "
            f"on {day} at {start_time}"
        )

        with self.locks.hold([request.provider_id]):
            client = self.repo.get_client(request.client_id)
            if not client:
                raise SchedulingError(ErrorKind.NOT_FOUND, f"Client {request.client_id} not found")
            provider = self.repo.get_provider(request.provider_id)
            if not provider:
                raise SchedulingError(ErrorKind.NOT_FOUND, f"Provider {request.provider_id} not found")
            service = self.repo.get_service(request.service_id)
            if not service:
                raise SchedulingError(ErrorKind.NOT_FOUND, f"Service {request.service_id} not found")

            if not provider.is_active or service.id not in provider.service_ids:
                raise SchedulingError(
                    ErrorKind.SERVICE_NOT_OFFERED,
                    f"{provider.name} does not offer {service.name}",
                )

            if self.start_of(day, start_time) < self.now():
                raise SchedulingError(ErrorKind.PAST_DATE_TIME, f"{day} {start_time} is in the past")

            validate_duration(service, request.duration_minutes)

            if not self.availability.is_slot_available(
                provider.id, day, start_time, request.duration_minutes
            ):
                raise SchedulingError(
                    ErrorKind.SLOT_UNAVAILABLE,
                    f"{provider.name} is not available on {day} at {start_time} "
                    f"for {request.duration_minutes} minutes",
                )

            appointment = self.repo.add_appointment(
                client_id=client.id,
                provider_id=provider.id,
                service_id=service.id,
                appointment_date=day,
                start_time=start_time,
                duration_minutes=request.duration_minutes,
                status=AppointmentStatus.BOOKED.value,
                notes=request.notes,
                created_at=self.utc_timestamp(),
            )
            record_booking(client, day)
            self.db.commit()

        logger.info(f"✅ Appointment {appointment.id} booked for client {client.id}")

        warnings: list[str] = []
        self.report("book", appointment, None, snapshot(appointment), request.notes, warnings)

        event_id = self.side_effect(
            "Calendar event creation", lambda: self.calendar.create_event(appointment), warnings
        )
        if event_id:
            try:
                self.repo.update_appointment(appointment, calendar_event_id=event_id)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Could not store calendar event {event_id} on appointment {appointment.id}: {e}")
                warnings.append(f"Calendar event {event_id} created but not linked to the appointment")

        return appointment, warnings
