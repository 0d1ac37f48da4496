"""Client repository - Database operations for clients"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Client


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def get_clients(db: Session, limit: int = 100, offset: int = 0) -> list[Client]:
        return (
            db.query(Client)
            .order_by(Client.last_name, Client.first_name)
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_client_by_id(db: Session, client_id: int) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id).first()

    @staticmethod
    def get_client_by_email(db: Session, email: str) -> Optional[Client]:
        return db.query(Client).filter(Client.email == email).first()

    @staticmethod
    def create_client(db: Session, **client_data) -> Client:
        client = Client(**client_data)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(client, key):
                setattr(client, key, value)

        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def search_clients(db: Session, search: str, limit: int = 20) -> list[Client]:
        """Case-insensitive match on first name, last name, email or phone"""
        search_term = f"%{search.lower()}%"
        return (
            db.query(Client)
            .filter(
                (Client.first_name.ilike(search_term))
                | (Client.last_name.ilike(search_term))
                | (Client.email.ilike(search_term))
                | (Client.phone.ilike(search_term))
            )
            .order_by(Client.last_name, Client.first_name)
            .limit(limit)
            .all()
        )
