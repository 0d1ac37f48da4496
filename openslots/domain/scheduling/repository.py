"""Scheduling repository - Database operations for availability and appointments"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...cache import Cache, build_schedule_window_key, read_invalidation_markers
from ...models import (
    Appointment,
    AvailabilityRule,
    BusinessException,
    BusinessHoliday,
    Client,
    Provider,
    ProviderException,
    Service,
)
from .lifecycle import ACTIVE_STATUSES
from .time_calculator import MINUTES_PER_DAY, Interval, time_to_minutes

logger = logging.getLogger(__name__)

ACTIVE_STATUS_VALUES = [s.value for s in ACTIVE_STATUSES]


def _exception_interval(exc) -> Interval:
    return time_to_minutes(exc.start_time), time_to_minutes(exc.end_time, allow_end_of_day=True)


class SchedulingRepository:
    """Repository for scheduling reads and writes. Writes are flushed, never committed here."""

    def __init__(self, db: Session, cache: Optional[Cache] = None, cache_ttl: int = 300):
        self.db = db
        self.cache = cache
        self.cache_ttl = cache_ttl

    # Entity lookups
    def get_provider(self, provider_id: int) -> Optional[Provider]:
        return self.db.get(Provider, provider_id)

    def get_service(self, service_id: int) -> Optional[Service]:
        return self.db.get(Service, service_id)

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.db.get(Client, client_id)

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.get(Appointment, appointment_id)

    # Appointments
    def list_active_appointments(
        self, provider_id: int, day: date, exclude_appointment_id: Optional[int] = None
    ) -> list[Appointment]:
        """Appointments occupying the provider's calendar on a date"""
        query = self.db.query(Appointment).filter(
            Appointment.provider_id == provider_id,
            Appointment.appointment_date == day,
            Appointment.status.in_(ACTIVE_STATUS_VALUES),
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.all()

    def list_appointments(
        self, provider_id: int, day: date, status: Optional[str] = None
    ) -> list[Appointment]:
        """All appointments for a provider on a date, in start-time order"""
        query = self.db.query(Appointment).filter(
            Appointment.provider_id == provider_id,
            Appointment.appointment_date == day,
        )
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.start_time).all()

    def add_appointment(self, **appointment_data) -> Appointment:
        appointment = Appointment(**appointment_data)
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def update_appointment(self, appointment: Appointment, **updates) -> Appointment:
        for key, value in updates.items():
            setattr(appointment, key, value)
        self.db.flush()
        return appointment

    # Schedule window (rules, exceptions, holidays)
    def get_schedule_window(self, provider_id: int, day: date) -> dict:
        """
        Recurring open intervals and blocking exceptions for a provider on a date.

        Returns {"closed": bool, "open": [[start, end], ...], "blocked": [[start, end], ...]}
        with times in minutes. Appointments are never part of the cached window.
        """
        cache_key = build_schedule_window_key(provider_id, day.isoformat())
        markers = None
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached
            markers = read_invalidation_markers(provider_id, self.cache)

        window = {
            "closed": self._is_business_closed(day),
            "open": [list(i) for i in self._rule_intervals(provider_id, day)],
            "blocked": [list(i) for i in self._blocked_intervals(provider_id, day)],
        }

        if self.cache is not None:
            # An admin write landed while we were reading; this window may predate it
            if read_invalidation_markers(provider_id, self.cache) != markers:
                logger.debug(f"🔄 Schedule for provider {provider_id} changed during read, not caching")
                return window
            self.cache.set(cache_key, window, self.cache_ttl)
        return window

    def _rule_intervals(self, provider_id: int, day: date) -> list[Interval]:
        rules = (
            self.db.query(AvailabilityRule)
            .filter(
                AvailabilityRule.provider_id == provider_id,
                AvailabilityRule.day_of_week == day.weekday(),
                or_(AvailabilityRule.effective_from.is_(None), AvailabilityRule.effective_from <= day),
                or_(AvailabilityRule.effective_until.is_(None), AvailabilityRule.effective_until >= day),
            )
            .all()
        )

        intervals = []
        for rule in rules:
            # One-off rules only open the date they were written for
            if not rule.is_recurring and rule.effective_from != day:
                continue
            start = time_to_minutes(rule.start_time)
            intervals.append((start, time_to_minutes(rule.end_time, allow_end_of_day=True)))
        return intervals

    def _is_business_closed(self, day: date) -> bool:
        holiday = self.db.query(BusinessHoliday).filter(BusinessHoliday.date == day).first()
        if holiday:
            return True

        full_day_closure = (
            self.db.query(BusinessException)
            .filter(
                BusinessException.date == day,
                or_(BusinessException.start_time.is_(None), BusinessException.end_time.is_(None)),
            )
            .first()
        )
        return full_day_closure is not None

    def _blocked_intervals(self, provider_id: int, day: date) -> list[Interval]:
        blocked = []

        provider_exceptions = (
            self.db.query(ProviderException)
            .filter(ProviderException.provider_id == provider_id, ProviderException.date == day)
            .all()
        )
        for exc in provider_exceptions:
            if exc.start_time is None or exc.end_time is None:
                blocked.append((0, MINUTES_PER_DAY))
            else:
                blocked.append(_exception_interval(exc))

        business_exceptions = (
            self.db.query(BusinessException)
            .filter(
                BusinessException.date == day,
                BusinessException.start_time.isnot(None),
                BusinessException.end_time.isnot(None),
            )
            .all()
        )
        for exc in business_exceptions:
            blocked.append(_exception_interval(exc))

        return blocked
