"""Provider repository - Database operations for providers, services and closures"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import (
    AvailabilityRule,
    BusinessException,
    BusinessHoliday,
    Provider,
    ProviderException,
    Service,
)


class ProviderRepository:
    """Repository for provider database operations"""

    # Services
    @staticmethod
    def get_services(db: Session) -> list[Service]:
        return db.query(Service).order_by(Service.name).all()

    @staticmethod
    def get_service_by_id(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_services_by_ids(db: Session, service_ids: list[int]) -> list[Service]:
        if not service_ids:
            return []
        return db.query(Service).filter(Service.id.in_(service_ids)).all()

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    # Providers
    @staticmethod
    def get_providers(db: Session, active_only: bool = False) -> list[Provider]:
        query = db.query(Provider)
        if active_only:
            query = query.filter(Provider.is_active.is_(True))
        return query.order_by(Provider.name).all()

    @staticmethod
    def get_provider_by_id(db: Session, provider_id: int) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.id == provider_id).first()

    @staticmethod
    def create_provider(db: Session, services: list[Service], **provider_data) -> Provider:
        provider = Provider(**provider_data)
        provider.services = services
        db.add(provider)
        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    def update_provider(
        db: Session, provider: Provider, services: Optional[list[Service]] = None, **updates
    ) -> Provider:
        for key, value in updates.items():
            if value is not None and hasattr(provider, key):
                setattr(provider, key, value)
        if services is not None:
            provider.services = services

        db.commit()
        db.refresh(provider)
        return provider

    # Working hours
    @staticmethod
    def get_rules(db: Session, provider_id: int) -> list[AvailabilityRule]:
        return (
            db.query(AvailabilityRule)
            .filter(AvailabilityRule.provider_id == provider_id)
            .order_by(AvailabilityRule.day_of_week, AvailabilityRule.start_time)
            .all()
        )

    @staticmethod
    def get_rule(db: Session, provider_id: int, rule_id: int) -> Optional[AvailabilityRule]:
        return (
            db.query(AvailabilityRule)
            .filter(AvailabilityRule.id == rule_id, AvailabilityRule.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def add(db: Session, record):
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def delete(db: Session, record) -> None:
        db.delete(record)
        db.commit()

    # Closures
    @staticmethod
    def get_provider_exceptions(
        db: Session,
        provider_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ProviderException]:
        query = db.query(ProviderException).filter(ProviderException.provider_id == provider_id)
        if start_date:
            query = query.filter(ProviderException.date >= start_date)
        if end_date:
            query = query.filter(ProviderException.date <= end_date)
        return query.order_by(ProviderException.date, ProviderException.start_time).all()

    @staticmethod
    def get_provider_exception(
        db: Session, provider_id: int, exception_id: int
    ) -> Optional[ProviderException]:
        return (
            db.query(ProviderException)
            .filter(ProviderException.id == exception_id, ProviderException.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def get_business_exceptions(db: Session) -> list[BusinessException]:
        return db.query(BusinessException).order_by(BusinessException.date).all()

    @staticmethod
    def get_business_exception(db: Session, exception_id: int) -> Optional[BusinessException]:
        return db.query(BusinessException).filter(BusinessException.id == exception_id).first()

    @staticmethod
    def get_holidays(db: Session) -> list[BusinessHoliday]:
        return db.query(BusinessHoliday).order_by(BusinessHoliday.date).all()

    @staticmethod
    def get_holiday(db: Session, holiday_id: int) -> Optional[BusinessHoliday]:
        return db.query(BusinessHoliday).filter(BusinessHoliday.id == holiday_id).first()

    @staticmethod
    def get_holiday_by_date(db: Session, day: date) -> Optional[BusinessHoliday]:
        return db.query(BusinessHoliday).filter(BusinessHoliday.date == day).first()
