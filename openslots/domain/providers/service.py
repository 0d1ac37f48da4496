"""Provider service - Business logic for providers, services, working hours and closures"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import Cache, invalidate_all_availability, invalidate_provider_availability
from ...models import (
    AvailabilityRule,
    BusinessException,
    BusinessHoliday,
    Provider,
    ProviderException,
    Service,
)
from ..scheduling.errors import ErrorKind, SchedulingError
from ..scheduling.time_calculator import minutes_to_time, time_to_minutes
from .repository import ProviderRepository
from .schemas import (
    AvailabilityRuleCreate,
    ClosureCreate,
    HolidayCreate,
    ProviderCreate,
    ProviderResponse,
    ProviderUpdate,
    ServiceCreate,
    ServiceResponse,
)

logger = logging.getLogger(__name__)


def validate_time_range(start_time: Optional[str], end_time: Optional[str]) -> tuple[str, str]:
    """
    Validate a same-day interval and return it normalized to "HH:MM".

    Overnight intervals (end before start) and empty intervals are rejected;
    availability is always resolved within a single day.
    An end of "24:00" runs the interval to midnight.
    """
    if not start_time or not end_time:
        raise SchedulingError(ErrorKind.INVALID_AVAILABILITY_RULE, "Both start and end time are required")

    try:
        start = time_to_minutes(start_time)
        end = time_to_minutes(end_time, allow_end_of_day=True)
    except SchedulingError as e:
        raise SchedulingError(ErrorKind.INVALID_AVAILABILITY_RULE, e.message) from e

    if end <= start:
        raise SchedulingError(
            ErrorKind.INVALID_AVAILABILITY_RULE,
            f"End time {end_time} must be after start time {start_time} on the same day",
        )
    return minutes_to_time(start), minutes_to_time(end)


def rule_error(e: SchedulingError) -> HTTPException:
    return HTTPException(status_code=422, detail={"kind": e.kind.value, "message": e.message})


def to_service_response(service: Service) -> ServiceResponse:
    return ServiceResponse(
        id=service.id,
        name=service.name,
        description=service.description,
        durationOptions=list(service.duration_options or []),
    )


def to_provider_response(provider: Provider) -> ProviderResponse:
    return ProviderResponse(
        id=provider.id,
        name=provider.name,
        email=provider.email,
        phone=provider.phone,
        isActive=provider.is_active,
        serviceIds=sorted(provider.service_ids),
    )


class ProviderService:
    """Service layer for provider administration"""

    def __init__(self, db: Session, cache: Optional[Cache] = None):
        self.db = db
        self.cache = cache
        self.repo = ProviderRepository()

    # ------------------------------------------------------------------
    # Services offered
    # ------------------------------------------------------------------

    def get_services(self) -> list[Service]:
        return self.repo.get_services(self.db)

    def create_service(self, data: ServiceCreate) -> Service:
        service = self.repo.create_service(
            self.db,
            name=data.name,
            description=data.description,
            duration_options=data.durationOptions,
        )
        logger.info(f"✅ Created service {service.id} ({service.name})")
        return service

    def _resolve_services(self, service_ids: list[int]) -> list[Service]:
        services = self.repo.get_services_by_ids(self.db, service_ids)
        missing = set(service_ids) - {s.id for s in services}
        if missing:
            raise HTTPException(status_code=404, detail=f"Services not found: {sorted(missing)}")
        return services

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def get_providers(self, active_only: bool = False) -> list[Provider]:
        return self.repo.get_providers(self.db, active_only)

    def get_provider(self, provider_id: int) -> Provider:
        provider = self.repo.get_provider_by_id(self.db, provider_id)
        if not provider:
            raise HTTPException(status_code=404, detail="Provider not found")
        return provider

    def create_provider(self, data: ProviderCreate) -> Provider:
        services = self._resolve_services(data.serviceIds)
        provider = self.repo.create_provider(
            self.db, services, name=data.name, email=data.email, phone=data.phone, is_active=True
        )
        logger.info(f"✅ Created provider {provider.id} offering {len(services)} services")
        return provider

    def update_provider(self, provider_id: int, data: ProviderUpdate) -> Provider:
        provider = self.get_provider(provider_id)
        services = self._resolve_services(data.serviceIds) if data.serviceIds is not None else None

        provider = self.repo.update_provider(
            self.db,
            provider,
            services,
            name=data.name,
            email=data.email,
            phone=data.phone,
            is_active=data.isActive,
        )
        invalidate_provider_availability(provider_id, self.cache)
        return provider

    def deactivate_provider(self, provider_id: int) -> Provider:
        """Providers are never deleted; deactivation removes them from booking"""
        provider = self.get_provider(provider_id)
        provider = self.repo.update_provider(self.db, provider, is_active=False)
        invalidate_provider_availability(provider_id, self.cache)
        logger.info(f"🚫 Provider {provider_id} deactivated")
        return provider

    # ------------------------------------------------------------------
    # Working hours
    # ------------------------------------------------------------------

    def get_rules(self, provider_id: int) -> list[AvailabilityRule]:
        self.get_provider(provider_id)
        return self.repo.get_rules(self.db, provider_id)

    def create_rule(self, provider_id: int, data: AvailabilityRuleCreate) -> AvailabilityRule:
        self.get_provider(provider_id)

        try:
            if data.dayOfWeek < 0 or data.dayOfWeek > 6:
                raise SchedulingError(
                    ErrorKind.INVALID_AVAILABILITY_RULE, "Day of week must be 0 (Monday) to 6 (Sunday)"
                )
            start_time, end_time = validate_time_range(data.startTime, data.endTime)
            if data.effectiveFrom and data.effectiveUntil and data.effectiveUntil < data.effectiveFrom:
                raise SchedulingError(
                    ErrorKind.INVALID_AVAILABILITY_RULE, "Effective range ends before it starts"
                )
            if not data.isRecurring:
                if not data.effectiveFrom:
                    raise SchedulingError(
                        ErrorKind.INVALID_AVAILABILITY_RULE, "One-off availability needs an effective date"
                    )
                if data.effectiveFrom.weekday() != data.dayOfWeek:
                    raise SchedulingError(
                        ErrorKind.INVALID_AVAILABILITY_RULE,
                        "One-off availability date does not fall on the given day of week",
                    )
        except SchedulingError as e:
            logger.warning(f"⚠️ Rejected availability rule for provider {provider_id}: {e.message}")
            raise rule_error(e) from e

        rule = self.repo.add(
            self.db,
            AvailabilityRule(
                provider_id=provider_id,
                day_of_week=data.dayOfWeek,
                start_time=start_time,
                end_time=end_time,
                effective_from=data.effectiveFrom,
                effective_until=data.effectiveUntil,
                is_recurring=data.isRecurring,
            ),
        )
        invalidate_provider_availability(provider_id, self.cache)
        logger.info(f"✅ Added availability rule {rule.id} for provider {provider_id}")
        return rule

    def delete_rule(self, provider_id: int, rule_id: int) -> dict:
        rule = self.repo.get_rule(self.db, provider_id, rule_id)
        if not rule:
            raise HTTPException(status_code=404, detail="Availability rule not found")
        self.repo.delete(self.db, rule)
        invalidate_provider_availability(provider_id, self.cache)
        return {"message": "Availability rule deleted"}

    # ------------------------------------------------------------------
    # Closures
    # ------------------------------------------------------------------

    def _closure_times(self, data: ClosureCreate) -> tuple[Optional[str], Optional[str]]:
        if data.startTime is None and data.endTime is None:
            return None, None
        try:
            return validate_time_range(data.startTime, data.endTime)
        except SchedulingError as e:
            raise rule_error(e) from e

    def get_provider_exceptions(
        self, provider_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[ProviderException]:
        self.get_provider(provider_id)
        return self.repo.get_provider_exceptions(self.db, provider_id, start_date, end_date)

    def create_provider_exception(self, provider_id: int, data: ClosureCreate) -> ProviderException:
        self.get_provider(provider_id)
        start_time, end_time = self._closure_times(data)

        exception = self.repo.add(
            self.db,
            ProviderException(
                provider_id=provider_id,
                date=data.date,
                start_time=start_time,
                end_time=end_time,
                reason=data.reason,
            ),
        )
        invalidate_provider_availability(provider_id, self.cache)
        logger.info(f"✅ Provider {provider_id} time off added for {data.date}")
        return exception

    def delete_provider_exception(self, provider_id: int, exception_id: int) -> dict:
        exception = self.repo.get_provider_exception(self.db, provider_id, exception_id)
        if not exception:
            raise HTTPException(status_code=404, detail="Exception not found")
        self.repo.delete(self.db, exception)
        invalidate_provider_availability(provider_id, self.cache)
        return {"message": "Exception deleted"}

    def get_business_exceptions(self) -> list[BusinessException]:
        return self.repo.get_business_exceptions(self.db)

    def create_business_exception(self, data: ClosureCreate) -> BusinessException:
        start_time, end_time = self._closure_times(data)
        exception = self.repo.add(
            self.db,
            BusinessException(date=data.date, start_time=start_time, end_time=end_time, reason=data.reason),
        )
        invalidate_all_availability(self.cache)
        logger.info(f"✅ Business closure added for {data.date}")
        return exception

    def delete_business_exception(self, exception_id: int) -> dict:
        exception = self.repo.get_business_exception(self.db, exception_id)
        if not exception:
            raise HTTPException(status_code=404, detail="Exception not found")
        self.repo.delete(self.db, exception)
        invalidate_all_availability(self.cache)
        return {"message": "Exception deleted"}

    def get_holidays(self) -> list[BusinessHoliday]:
        return self.repo.get_holidays(self.db)

    def create_holiday(self, data: HolidayCreate) -> BusinessHoliday:
        if self.repo.get_holiday_by_date(self.db, data.date):
            raise HTTPException(status_code=409, detail=f"A holiday already exists on {data.date}")
        holiday = self.repo.add(self.db, BusinessHoliday(date=data.date, name=data.name))
        invalidate_all_availability(self.cache)
        logger.info(f"🎉 Holiday {data.name} added for {data.date}")
        return holiday

    def delete_holiday(self, holiday_id: int) -> dict:
        holiday = self.repo.get_holiday(self.db, holiday_id)
        if not holiday:
            raise HTTPException(status_code=404, detail="Holiday not found")
        self.repo.delete(self.db, holiday)
        invalidate_all_availability(self.cache)
        return {"message": "Holiday deleted"}
