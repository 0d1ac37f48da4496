from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from openslots.config import get_scheduling_config
from openslots.database import Base
from openslots.domain.scheduling.engine import SchedulingEngine
from openslots.domain.scheduling.errors import LockTimeout
from openslots.domain.scheduling.locks import ProviderLockRegistry, get_provider_locks
from openslots.domain.scheduling.router import _locks as api_locks
from openslots.models import Appointment, AvailabilityRule, Client, Provider, Service


def test_lock_times_out_while_another_thread_holds_it() -> None:
    locks = ProviderLockRegistry(timeout_seconds=0.1)
    held = threading.Event()
    release = threading.Event()

    def hold_lock():
        with locks.hold([1]):
            held.set()
            release.wait(2)

    worker = threading.Thread(target=hold_lock)
    worker.start()
    held.wait(2)
    try:
        with pytest.raises(LockTimeout):
            with locks.hold([1]):
                pass
        # Other providers are unaffected
        with locks.hold([2]):
            pass
    finally:
        release.set()
        worker.join()


def test_other_providers_book_while_one_provider_is_locked(engine, salon, make_booking) -> None:
    locks = engine.booking.locks
    alex_id, sam_id = salon.alex.id, salon.sam.id
    held = threading.Event()
    release = threading.Event()

    def hold_alex():
        with locks.hold([alex_id]):
            held.set()
            release.wait(5)

    worker = threading.Thread(target=hold_alex)
    worker.start()
    held.wait(2)
    try:
        result = engine.book_appointment(make_booking(provider_id=sam_id))
        assert result.success, result.error
        assert result.data["appointment"].provider_id == sam_id

        with pytest.raises(LockTimeout):
            engine.book_appointment(make_booking(start_time="13:00"))
    finally:
        release.set()
        worker.join()


def test_engines_share_the_process_wide_lock_registry(db, config, activity) -> None:
    batch = SchedulingEngine(db, config, activity)
    other = SchedulingEngine(db, config, activity)

    assert batch.booking.locks is other.lifecycle.locks
    assert batch.booking.locks is get_provider_locks()
    assert api_locks is get_provider_locks()
    assert get_provider_locks().timeout_seconds == get_scheduling_config().lock_timeout_seconds



def test_locks_are_released_after_errors() -> None:
    locks = ProviderLockRegistry(timeout_seconds=0.1)
    with pytest.raises(ValueError):
        with locks.hold([3, 1]):
            raise ValueError("boom")
    with locks.hold([1, 3]):
        pass


def test_concurrent_bookings_for_one_slot_produce_one_appointment(tmp_path, config, activity, calendar, clock) -> None:
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 10},
    )
    Base.metadata.create_all(bind=db_engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    setup = Session()
    service = Service(name="Haircut", duration_options=[60])
    provider = Provider(name="Alex", is_active=True, services=[service])
    clients = [Client(first_name=f"Client {i}") for i in range(6)]
    setup.add_all([service, provider, *clients])
    setup.flush()
    setup.add(AvailabilityRule(provider_id=provider.id, day_of_week=1, start_time="09:00", end_time="17:00"))
    setup.commit()
    ids = (provider.id, service.id, [c.id for c in clients])
    setup.close()

    locks = ProviderLockRegistry(timeout_seconds=10)
    provider_id, service_id, client_ids = ids

    def book(client_id):
        session = Session()
        try:
            engine = SchedulingEngine(session, config, activity, calendar=calendar, locks=locks, clock=clock)
            return engine.book_appointment(
                {
                    "client_id": client_id,
                    "provider_id": provider_id,
                    "service_id": service_id,
                    "date": "2026-03-03",
                    "start_time": "10:00",
                    "duration_minutes": 60,
                }
            )
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(client_ids)) as pool:
        results = list(pool.map(book, client_ids))

    assert sum(r.success for r in results) == 1
    assert {r.error.kind for r in results if not r.success} == {"SlotUnavailable"}

    check = Session()
    stored = check.query(Appointment).filter(Appointment.appointment_date == date(2026, 3, 3)).all()
    assert len(stored) == 1
    check.close()
    db_engine.dispose()


def test_engine_clock_defaults_to_business_time(db, config, activity) -> None:
    engine = SchedulingEngine(db, config, activity)
    now = engine.clock()
    assert isinstance(now, datetime)
    assert now.tzinfo is not None
