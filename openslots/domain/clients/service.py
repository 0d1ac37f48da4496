"""Client service - Business logic for client operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Client
from .repository import ClientRepository
from .schemas import ClientCreate, ClientResponse, ClientUpdate

logger = logging.getLogger(__name__)


def to_client_response(client: Client) -> ClientResponse:
    return ClientResponse(
        id=client.id,
        firstName=client.first_name,
        lastName=client.last_name,
        email=client.email,
        phone=client.phone,
        notes=client.notes,
        firstVisitDate=client.first_visit_date,
        lastVisitDate=client.last_visit_date,
        noShowCount=client.no_show_count or 0,
        created_at=client.created_at,
    )


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(self, limit: int = 100, offset: int = 0) -> list[Client]:
        return self.repo.get_clients(self.db, limit, offset)

    def get_client(self, client_id: int) -> Client:
        client = self.repo.get_client_by_id(self.db, client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def create_client(self, data: ClientCreate) -> Client:
        """Create a new client, rejecting duplicate email addresses"""
        if data.email and self.repo.get_client_by_email(self.db, data.email):
            logger.warning(f"⚠️ Client with email {data.email} already exists")
            raise HTTPException(status_code=409, detail="A client with this email already exists")

        client = self.repo.create_client(
            self.db,
            first_name=data.firstName,
            last_name=data.lastName,
            email=data.email,
            phone=data.phone,
            notes=data.notes,
        )
        logger.info(f"✅ Created client {client.id}")
        return client

    def update_client(self, client_id: int, data: ClientUpdate) -> Client:
        client = self.get_client(client_id)

        if data.email and data.email != client.email:
            existing = self.repo.get_client_by_email(self.db, data.email)
            if existing and existing.id != client.id:
                raise HTTPException(status_code=409, detail="A client with this email already exists")

        updates = {
            "first_name": data.firstName,
            "last_name": data.lastName,
            "email": data.email,
            "phone": data.phone,
            "notes": data.notes,
        }
        return self.repo.update_client(self.db, client, **updates)

    def search_clients(self, search: Optional[str]) -> list[Client]:
        if not search or len(search.strip()) < 2:
            raise HTTPException(status_code=400, detail="Search term must be at least 2 characters")
        return self.repo.search_clients(self.db, search.strip())
