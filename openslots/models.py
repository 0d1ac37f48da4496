from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

provider_services = Table(
    "provider_services",
    Base.metadata,
    Column("provider_id", Integer, ForeignKey("providers.id"), primary_key=True),
    Column("service_id", Integer, ForeignKey("services.id"), primary_key=True),
)


class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    services = relationship("Service", secondary=provider_services, back_populates="providers")
    availability_rules = relationship(
        "AvailabilityRule", back_populates="provider", cascade="all, delete-orphan"
    )
    exceptions = relationship(
        "ProviderException", back_populates="provider", cascade="all, delete-orphan"
    )
    appointments = relationship("Appointment", back_populates="provider")

    @property
    def service_ids(self) -> set[int]:
        return {s.id for s in self.services}


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    # Allowed booking lengths in minutes, e.g. [30, 60]. Empty means any positive duration.
    duration_options = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    providers = relationship("Provider", secondary=provider_services, back_populates="services")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    notes = Column(String(1000), nullable=True)

    # Visit history, maintained by appointment lifecycle events
    first_visit_date = Column(Date, nullable=True)
    last_visit_date = Column(Date, nullable=True)
    no_show_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="client")


class AvailabilityRule(Base):
    """Standing weekly open interval for a provider"""

    __tablename__ = "availability_rules"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0 = Monday ... 6 = Sunday
    start_time = Column(String(5), nullable=False)  # HH:MM format
    end_time = Column(String(5), nullable=False)
    effective_from = Column(Date, nullable=True)  # inclusive, open-ended when null
    effective_until = Column(Date, nullable=True)  # inclusive, open-ended when null
    # Non-recurring rules apply only on effective_from
    is_recurring = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("Provider", back_populates="availability_rules")


class ProviderException(Base):
    """Date-specific time off for one provider. Null times mean the whole day."""

    __tablename__ = "provider_exceptions"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    reason = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("Provider", back_populates="exceptions")


class BusinessException(Base):
    """Business-wide closure for part of a day (or the whole day when times are null)"""

    __tablename__ = "business_exceptions"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    reason = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class BusinessHoliday(Base):
    __tablename__ = "business_holidays"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    appointment_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM format
    duration_minutes = Column(Integer, nullable=False)

    # Booked → Confirmed → Checked-in → Completed, plus Cancelled / No-show / Rescheduled
    status = Column(String(20), default="Booked", nullable=False, index=True)
    notes = Column(Text, nullable=True)
    cancellation_reason = Column(String(1000), nullable=True)
    reschedule_count = Column(Integer, default=0, nullable=False)

    # Google Calendar event id, cleared on cancellation
    calendar_event_id = Column(String(500), nullable=True)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="appointments")
    provider = relationship("Provider", back_populates="appointments")
    service = relationship("Service")


class ActivityLog(Base):
    """Audit trail of appointment lifecycle events"""

    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    appointment_id = Column(Integer, nullable=True, index=True)
    client_id = Column(Integer, nullable=True)
    provider_id = Column(Integer, nullable=True)
    previous_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    note = Column(String(1000), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
