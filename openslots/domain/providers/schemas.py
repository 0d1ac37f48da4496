"""Provider domain schemas - Pydantic models for validation"""

import datetime as dt
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_email, validate_phone


class ServiceCreate(BaseModel):
    name: str
    description: Optional[str] = None
    durationOptions: list[int] = Field(default_factory=list)

    @field_validator("durationOptions")
    @classmethod
    def validate_durations(cls, v):
        if any(d <= 0 for d in v):
            raise ValueError("Duration options must be greater than 0")
        return sorted(set(v))


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    durationOptions: list[int] = Field(default_factory=list)


class ProviderCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    serviceIds: list[int] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone_field(cls, v):
        return validate_phone(v)


class ProviderUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    isActive: Optional[bool] = None
    serviceIds: Optional[list[int]] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone_field(cls, v):
        return validate_phone(v)


class ProviderResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    isActive: bool
    serviceIds: list[int] = Field(default_factory=list)


class AvailabilityRuleCreate(BaseModel):
    """Weekly working hours. Times are validated by the service so errors carry a rule error kind."""

    dayOfWeek: int  # 0 = Monday ... 6 = Sunday
    startTime: str
    endTime: str
    effectiveFrom: Optional[date] = None
    effectiveUntil: Optional[date] = None
    isRecurring: bool = True


class AvailabilityRuleResponse(BaseModel):
    id: int
    provider_id: int
    day_of_week: int
    start_time: str
    end_time: str
    effective_from: Optional[date] = None
    effective_until: Optional[date] = None
    is_recurring: bool

    model_config = ConfigDict(from_attributes=True)


class ClosureCreate(BaseModel):
    """Provider or business exception; omit both times for a full-day closure"""

    date: dt.date
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    reason: Optional[str] = Field(default=None, max_length=500)


class ClosureResponse(BaseModel):
    id: int
    date: dt.date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None
    provider_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class HolidayCreate(BaseModel):
    date: dt.date
    name: str


class HolidayResponse(BaseModel):
    id: int
    date: dt.date
    name: str

    model_config = ConfigDict(from_attributes=True)
