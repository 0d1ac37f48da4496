"""Provider router - FastAPI endpoints for provider administration"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...cache import cache
from ...database import get_db
from .schemas import (
    AvailabilityRuleCreate,
    AvailabilityRuleResponse,
    ClosureCreate,
    ClosureResponse,
    HolidayCreate,
    HolidayResponse,
    ProviderCreate,
    ProviderResponse,
    ProviderUpdate,
    ServiceCreate,
    ServiceResponse,
)
from .service import ProviderService, to_provider_response, to_service_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Providers"])


def get_provider_service(db: Session = Depends(get_db)) -> ProviderService:
    """Dependency injection for ProviderService"""
    return ProviderService(db, cache)


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/services", response_model=list[ServiceResponse])
async def get_services(service: ProviderService = Depends(get_provider_service)):
    return [to_service_response(s) for s in service.get_services()]


@router.post("/services", response_model=ServiceResponse, status_code=201)
async def create_service(data: ServiceCreate, service: ProviderService = Depends(get_provider_service)):
    return to_service_response(service.create_service(data))


# ============================================================================
# PROVIDERS
# ============================================================================


@router.get("/providers", response_model=list[ProviderResponse])
async def get_providers(
    active_only: bool = Query(False),
    service: ProviderService = Depends(get_provider_service),
):
    return [to_provider_response(p) for p in service.get_providers(active_only)]


@router.post("/providers", response_model=ProviderResponse, status_code=201)
async def create_provider(data: ProviderCreate, service: ProviderService = Depends(get_provider_service)):
    return to_provider_response(service.create_provider(data))


@router.get("/providers/{provider_id}", response_model=ProviderResponse)
async def get_provider(provider_id: int, service: ProviderService = Depends(get_provider_service)):
    return to_provider_response(service.get_provider(provider_id))


@router.patch("/providers/{provider_id}", response_model=ProviderResponse)
async def update_provider(
    provider_id: int,
    data: ProviderUpdate,
    service: ProviderService = Depends(get_provider_service),
):
    return to_provider_response(service.update_provider(provider_id, data))


@router.post("/providers/{provider_id}/deactivate", response_model=ProviderResponse)
async def deactivate_provider(provider_id: int, service: ProviderService = Depends(get_provider_service)):
    """Take a provider out of booking without losing appointment history"""
    return to_provider_response(service.deactivate_provider(provider_id))


# ============================================================================
# WORKING HOURS
# ============================================================================


@router.get("/providers/{provider_id}/availability-rules", response_model=list[AvailabilityRuleResponse])
async def get_availability_rules(provider_id: int, service: ProviderService = Depends(get_provider_service)):
    return service.get_rules(provider_id)


@router.post(
    "/providers/{provider_id}/availability-rules",
    response_model=AvailabilityRuleResponse,
    status_code=201,
)
async def create_availability_rule(
    provider_id: int,
    data: AvailabilityRuleCreate,
    service: ProviderService = Depends(get_provider_service),
):
    return service.create_rule(provider_id, data)


@router.delete("/providers/{provider_id}/availability-rules/{rule_id}")
async def delete_availability_rule(
    provider_id: int,
    rule_id: int,
    service: ProviderService = Depends(get_provider_service),
):
    return service.delete_rule(provider_id, rule_id)


# ============================================================================
# CLOSURES
# ============================================================================


@router.get("/providers/{provider_id}/exceptions", response_model=list[ClosureResponse])
async def get_provider_exceptions(
    provider_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    service: ProviderService = Depends(get_provider_service),
):
    return service.get_provider_exceptions(provider_id, start_date, end_date)


@router.post("/providers/{provider_id}/exceptions", response_model=ClosureResponse, status_code=201)
async def create_provider_exception(
    provider_id: int,
    data: ClosureCreate,
    service: ProviderService = Depends(get_provider_service),
):
    return service.create_provider_exception(provider_id, data)


@router.delete("/providers/{provider_id}/exceptions/{exception_id}")
async def delete_provider_exception(
    provider_id: int,
    exception_id: int,
    service: ProviderService = Depends(get_provider_service),
):
    return service.delete_provider_exception(provider_id, exception_id)


@router.get("/business/exceptions", response_model=list[ClosureResponse])
async def get_business_exceptions(service: ProviderService = Depends(get_provider_service)):
    return service.get_business_exceptions()


@router.post("/business/exceptions", response_model=ClosureResponse, status_code=201)
async def create_business_exception(data: ClosureCreate, service: ProviderService = Depends(get_provider_service)):
    return service.create_business_exception(data)


@router.delete("/business/exceptions/{exception_id}")
async def delete_business_exception(exception_id: int, service: ProviderService = Depends(get_provider_service)):
    return service.delete_business_exception(exception_id)


@router.get("/business/holidays", response_model=list[HolidayResponse])
async def get_holidays(service: ProviderService = Depends(get_provider_service)):
    return service.get_holidays()


@router.post("/business/holidays", response_model=HolidayResponse, status_code=201)
async def create_holiday(data: HolidayCreate, service: ProviderService = Depends(get_provider_service)):
    return service.create_holiday(data)


@router.delete("/business/holidays/{holiday_id}")
async def delete_holiday(holiday_id: int, service: ProviderService = Depends(get_provider_service)):
    return service.delete_holiday(holiday_id)
