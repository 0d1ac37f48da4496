"""Scheduling domain schemas - Pydantic models for requests and results"""

import datetime as dt
from datetime import date, datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Slot(BaseModel):
    start: str  # HH:MM
    end: str  # HH:MM


class BookingRequest(BaseModel):
    """Schema for booking an appointment. Presence is checked by the engine, not here."""

    client_id: Optional[int] = None
    provider_id: Optional[int] = None
    service_id: Optional[int] = None
    date: Optional[Union[dt.date, str]] = None  # YYYY-MM-DD
    start_time: Optional[str] = None  # HH:MM
    duration_minutes: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class RescheduleRequest(BaseModel):
    new_date: Optional[Union[date, str]] = None
    new_start_time: Optional[str] = None
    new_provider_id: Optional[int] = None
    new_service_id: Optional[int] = None
    new_duration: Optional[int] = None
    reason: Optional[str] = Field(default=None, max_length=1000)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class AppointmentResponse(BaseModel):
    id: int
    client_id: int
    provider_id: int
    service_id: int
    appointment_date: date
    start_time: str
    end_time: str
    duration_minutes: int
    status: str
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    reschedule_count: int = 0
    calendar_event_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ErrorDetail(BaseModel):
    kind: str
    message: str


class OperationResult(BaseModel):
    """Structured outcome returned by every engine entry point"""

    success: bool
    data: Optional[Any] = None
    error: Optional[ErrorDetail] = None
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def ok(cls, data: Any = None, warnings: Optional[list[str]] = None) -> "OperationResult":
        return cls(success=True, data=data, warnings=warnings or [])

    @classmethod
    def fail(cls, kind: str, message: str) -> "OperationResult":
        return cls(success=False, error=ErrorDetail(kind=kind, message=message))
