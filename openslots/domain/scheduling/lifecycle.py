"""
Appointment lifecycle state machine.

Pure rules only: which status transitions are legal and whether "now" falls
inside the check-in / no-show windows. Persistence lives in the services.

Statuses: Booked → Confirmed → Checked-in → Completed, with Cancelled,
No-show and Rescheduled branching off. Rescheduled behaves like Booked.
"""

from datetime import datetime, timedelta
from enum import Enum

from .errors import ErrorKind, SchedulingError


class AppointmentStatus(str, Enum):
    BOOKED = "Booked"
    CONFIRMED = "Confirmed"
    CHECKED_IN = "Checked-in"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "No-show"
    RESCHEDULED = "Rescheduled"


ACTIVE_STATUSES = frozenset(
    {
        AppointmentStatus.BOOKED,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CHECKED_IN,
        AppointmentStatus.RESCHEDULED,
    }
)

TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW}
)

_BOOKED_EDGES = frozenset(
    {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CHECKED_IN,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.RESCHEDULED,
        AppointmentStatus.NO_SHOW,
    }
)

VALID_TRANSITIONS: dict[AppointmentStatus, frozenset] = {
    AppointmentStatus.BOOKED: _BOOKED_EDGES,
    AppointmentStatus.RESCHEDULED: _BOOKED_EDGES,
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.CHECKED_IN,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.RESCHEDULED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.CHECKED_IN: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def can_transition(current_status, new_status) -> bool:
    """Check the transition table; unknown statuses are never legal"""
    try:
        current = AppointmentStatus(current_status)
        target = AppointmentStatus(new_status)
    except ValueError:
        return False
    return target in VALID_TRANSITIONS[current]


def require_transition(current_status, new_status) -> None:
    if not can_transition(current_status, new_status):
        raise SchedulingError(
            ErrorKind.ILLEGAL_TRANSITION,
            f"Cannot change appointment status from {current_status} to {AppointmentStatus(new_status).value}",
        )


def check_in_window(
    start: datetime, now: datetime, opens_minutes: int, closes_minutes: int
) -> None:
    """Raise unless now is within [start - opens, start + closes]"""
    if now < start - timedelta(minutes=opens_minutes):
        raise SchedulingError(
            ErrorKind.TOO_EARLY,
            f"Check-in opens {opens_minutes} minutes before the appointment",
        )
    if now > start + timedelta(minutes=closes_minutes):
        raise SchedulingError(
            ErrorKind.TOO_LATE,
            f"Check-in closed {closes_minutes} minutes after the appointment start",
        )


def no_show_window(start: datetime, now: datetime, grace_minutes: int) -> None:
    """Raise unless the grace period after start has fully elapsed"""
    if now < start:
        raise SchedulingError(
            ErrorKind.TOO_EARLY, "Cannot mark a future appointment as a no-show"
        )
    if now < start + timedelta(minutes=grace_minutes):
        raise SchedulingError(
            ErrorKind.WITHIN_GRACE_PERIOD,
            f"Client may still check in; wait {grace_minutes} minutes after the start time",
        )
