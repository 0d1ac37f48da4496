from __future__ import annotations

from datetime import date, datetime
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from openslots import models  # noqa: F401
from openslots.config import SchedulingConfig
from openslots.database import Base
from openslots.domain.scheduling.engine import SchedulingEngine
from openslots.domain.scheduling.locks import ProviderLockRegistry
from openslots.models import AvailabilityRule, Client, Provider, Service

TZ = "America/New_York"

# The clock starts on Monday 2026-03-02 at 08:00; bookings default to the Tuesday after
TUESDAY = date(2026, 3, 3)


class FixedClock:
    """Callable clock the tests can move forward"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, day: date, hour: int, minute: int = 0) -> None:
        self.now = datetime(day.year, day.month, day.day, hour, minute, tzinfo=ZoneInfo(TZ))


class FakeActivityLogger:
    def __init__(self):
        self.entries: list[dict] = []

    def log(self, action, appointment_id, client_id, provider_id, previous_value, new_value, note=None):
        self.entries.append(
            {
                "action": action,
                "appointment_id": appointment_id,
                "client_id": client_id,
                "provider_id": provider_id,
                "previous_value": previous_value,
                "new_value": new_value,
                "note": note,
            }
        )

    @property
    def actions(self) -> list[str]:
        return [e["action"] for e in self.entries]


class FakeCalendar:
    def __init__(self):
        self.created: list[int] = []
        self.updated: list[str] = []
        self.deleted: list[str] = []

    def create_event(self, appointment):
        self.created.append(appointment.id)
        return f"evt-{appointment.id}"

    def update_event(self, event_id, appointment):
        self.updated.append(event_id)

    def delete_event(self, event_id):
        self.deleted.append(event_id)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def config() -> SchedulingConfig:
    return SchedulingConfig(timezone=TZ)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 2, 8, 0, tzinfo=ZoneInfo(TZ)))


@pytest.fixture
def activity() -> FakeActivityLogger:
    return FakeActivityLogger()


@pytest.fixture
def calendar() -> FakeCalendar:
    return FakeCalendar()


@pytest.fixture
def engine(db, config, activity, calendar, clock) -> SchedulingEngine:
    return SchedulingEngine(
        db,
        config,
        activity,
        calendar=calendar,
        locks=ProviderLockRegistry(timeout_seconds=1),
        clock=clock,
    )


@pytest.fixture
def salon(db) -> SimpleNamespace:
    """Two providers working Monday to Friday 09:00-17:00 and one client"""
    haircut = Service(name="Haircut", duration_options=[30, 60])
    colour = Service(name="Colour", duration_options=[90])
    alex = Provider(name="Alex", is_active=True, services=[haircut])
    sam = Provider(name="Sam", is_active=True, services=[haircut, colour])
    client = Client(first_name="Jordan", last_name="Lee", email="jordan@example.com")
    db.add_all([haircut, colour, alex, sam, client])
    db.flush()

    for provider in (alex, sam):
        for day in range(5):
            db.add(
                AvailabilityRule(
                    provider_id=provider.id,
                    day_of_week=day,
                    start_time="09:00",
                    end_time="17:00",
                    is_recurring=True,
                )
            )
    db.commit()
    return SimpleNamespace(haircut=haircut, colour=colour, alex=alex, sam=sam, client=client)


@pytest.fixture
def make_booking(salon):
    """Booking payload for Alex on Tuesday 10:00-11:00, with overrides"""

    def build(**overrides) -> dict:
        data = {
            "client_id": salon.client.id,
            "provider_id": salon.alex.id,
            "service_id": salon.haircut.id,
            "date": TUESDAY.isoformat(),
            "start_time": "10:00",
            "duration_minutes": 60,
        }
        data.update(overrides)
        return data

    return build
