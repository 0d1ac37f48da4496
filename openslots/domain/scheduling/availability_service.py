"""
Availability Service
Derives a provider's bookable time for a date from recurring rules,
exceptions, holidays and already-booked appointments
"""

import logging
from datetime import date
from typing import Optional, Union

from ...config import SchedulingConfig
from .errors import ErrorKind, SchedulingError
from .repository import SchedulingRepository
from .schemas import Slot
from .time_calculator import (
    Interval,
    contains,
    discretize,
    merge_intervals,
    minutes_to_time,
    parse_date,
    subtract_intervals,
    time_to_minutes,
)

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Service layer for availability resolution"""

    def __init__(self, repo: SchedulingRepository, config: SchedulingConfig):
        self.repo = repo
        self.config = config

    def free_set(
        self, provider_id: int, day: date, exclude_appointment_id: Optional[int] = None
    ) -> list[Interval]:
        """Open intervals left after exceptions and active appointments are removed"""
        provider = self.repo.get_provider(provider_id)
        if not provider or not provider.is_active:
            raise SchedulingError(
                ErrorKind.PROVIDER_NOT_FOUND, f"Provider {provider_id} not found or inactive"
            )

        window = self.repo.get_schedule_window(provider_id, day)
        if window["closed"]:
            logger.debug(f"🚫 Business closed on {day}")
            return []

        base_open = merge_intervals(tuple(i) for i in window["open"])
        adjusted = subtract_intervals(base_open, (tuple(i) for i in window["blocked"]))

        booked = [
            (time_to_minutes(a.start_time), time_to_minutes(a.start_time) + a.duration_minutes)
            for a in self.repo.list_active_appointments(provider_id, day, exclude_appointment_id)
        ]
        return subtract_intervals(adjusted, booked)

    def resolve_availability(
        self,
        provider_id: int,
        day: Union[str, date],
        slot_granularity_minutes: Optional[int] = None,
    ) -> list[Slot]:
        """Bookable slots in chronological order; empty when closed or fully booked"""
        granularity = slot_granularity_minutes
        if granularity is None:
            granularity = self.config.slot_granularity_minutes
        if granularity <= 0:
            raise SchedulingError(ErrorKind.INVALID_DURATION, "Slot granularity must be greater than 0")

        target = parse_date(day, self.config.timezone)
        slots = discretize(self.free_set(provider_id, target), granularity)

        logger.debug(f"📅 Provider {provider_id} has {len(slots)} open slots on {target}")
        return [Slot(start=minutes_to_time(s), end=minutes_to_time(e)) for s, e in slots]

    def is_slot_available(
        self,
        provider_id: int,
        day: Union[str, date],
        start_time: str,
        duration_minutes: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        """True when the whole requested interval fits inside one free interval"""
        if duration_minutes is None or duration_minutes <= 0:
            raise SchedulingError(ErrorKind.INVALID_DURATION, "Duration must be greater than 0")

        target = parse_date(day, self.config.timezone)
        start = time_to_minutes(start_time)
        free = self.free_set(provider_id, target, exclude_appointment_id)
        return contains(free, start, start + duration_minutes)
