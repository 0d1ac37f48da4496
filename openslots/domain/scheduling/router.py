"""Scheduling router - FastAPI endpoints for availability and appointments"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...cache import cache
from ...config import get_scheduling_config
from ...database import SessionLocal, get_db
from .engine import SchedulingEngine
from .errors import ErrorKind
from .integration_service import DatabaseActivityLogger, get_calendar_sync
from .locks import get_provider_locks
from .schemas import BookingRequest, CancelRequest, OperationResult, RescheduleRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scheduling", tags=["Scheduling"])

# Shared across requests so every request for a provider waits on the same lock
_config = get_scheduling_config()
_locks = get_provider_locks()
_calendar = get_calendar_sync(_config)
_activity = DatabaseActivityLogger(SessionLocal)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND.value: 404,
    ErrorKind.PROVIDER_NOT_FOUND.value: 404,
    ErrorKind.SLOT_UNAVAILABLE.value: 409,
    ErrorKind.ILLEGAL_TRANSITION.value: 409,
}


def get_scheduling_engine(db: Session = Depends(get_db)) -> SchedulingEngine:
    """Dependency injection for SchedulingEngine"""
    return SchedulingEngine(db, _config, _activity, calendar=_calendar, locks=_locks, cache=cache)


def respond(result: OperationResult, success_status: int = 200) -> JSONResponse:
    if result.success:
        status_code = success_status
    else:
        status_code = STATUS_BY_KIND.get(result.error.kind, 422)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


# ============================================================================
# AVAILABILITY
# ============================================================================


@router.get("/providers/{provider_id}/availability")
def get_availability(
    provider_id: int,
    date: str = Query(..., description="YYYY-MM-DD"),
    granularity: Optional[int] = Query(None, description="Slot length in minutes"),
    engine: SchedulingEngine = Depends(get_scheduling_engine),
):
    return respond(engine.resolve_availability(provider_id, date, granularity))


@router.get("/providers/{provider_id}/slot-check")
def check_slot(
    provider_id: int,
    date: str = Query(...),
    start_time: str = Query(..., description="HH:MM"),
    duration: int = Query(...),
    exclude_appointment_id: Optional[int] = Query(None),
    engine: SchedulingEngine = Depends(get_scheduling_engine),
):
    return respond(engine.is_slot_available(provider_id, date, start_time, duration, exclude_appointment_id))


@router.get("/providers/{provider_id}/appointments")
def get_provider_appointments(
    provider_id: int,
    date: str = Query(...),
    status: Optional[str] = Query(None),
    engine: SchedulingEngine = Depends(get_scheduling_engine),
):
    return respond(engine.list_appointments(provider_id, date, status))


# ============================================================================
# APPOINTMENTS
# ============================================================================


@router.post("/appointments")
def book_appointment(data: BookingRequest, engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return respond(engine.book_appointment(data), success_status=201)


@router.get("/appointments/{appointment_id}")
def get_appointment(appointment_id: int, engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return respond(engine.get_appointment(appointment_id))


@router.post("/appointments/{appointment_id}/confirm")
def confirm_appointment(appointment_id: int, engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return respond(engine.confirm(appointment_id))


@router.post("/appointments/{appointment_id}/check-in")
def check_in(appointment_id: int, engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return respond(engine.check_in(appointment_id))


@router.post("/appointments/{appointment_id}/no-show")
def mark_no_show(appointment_id: int, engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return respond(engine.mark_no_show(appointment_id))


@router.post("/appointments/{appointment_id}/complete")
def complete_appointment(appointment_id: int, engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return respond(engine.complete(appointment_id))


@router.post("/appointments/{appointment_id}/cancel")
def cancel_appointment(
    appointment_id: int,
    data: Optional[CancelRequest] = None,
    engine: SchedulingEngine = Depends(get_scheduling_engine),
):
    return respond(engine.cancel(appointment_id, data.reason if data else None))


@router.post("/appointments/{appointment_id}/reschedule")
def reschedule_appointment(
    appointment_id: int,
    data: RescheduleRequest,
    engine: SchedulingEngine = Depends(get_scheduling_engine),
):
    return respond(engine.reschedule(appointment_id, data))
