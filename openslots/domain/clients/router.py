"""Client router - FastAPI endpoints for client operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import ClientCreate, ClientResponse, ClientUpdate
from .service import ClientService, to_client_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: ClientService = Depends(get_client_service),
):
    return [to_client_response(c) for c in service.get_clients(limit, offset)]


@router.get("/search", response_model=list[ClientResponse])
async def search_clients(
    q: Optional[str] = Query(None, description="Name, email or phone fragment"),
    service: ClientService = Depends(get_client_service),
):
    """Search clients for the booking screen"""
    return [to_client_response(c) for c in service.search_clients(q)]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, service: ClientService = Depends(get_client_service)):
    """Get a client with visit history"""
    return to_client_response(service.get_client(client_id))


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(data: ClientCreate, service: ClientService = Depends(get_client_service)):
    return to_client_response(service.create_client(data))


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    service: ClientService = Depends(get_client_service),
):
    return to_client_response(service.update_client(client_id, data))
