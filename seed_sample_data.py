"""
Seed a development database with sample providers, services, clients and working hours
Usage: python seed_sample_data.py
"""
import logging
import sys

from openslots import models  # noqa: F401
from openslots.database import Base, SessionLocal, engine
from openslots.models import AvailabilityRule, Client, Provider, Service

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

SERVICES = [
    {"name": "Haircut", "description": "Wash, cut and style", "duration_options": [30, 60]},
    {"name": "Colour", "description": "Full colour treatment", "duration_options": [90, 120]},
    {"name": "Consultation", "description": "Free initial consultation", "duration_options": [15, 30]},
]

PROVIDERS = [
    {"name": "Alex Morgan", "email": "alex@example.com", "services": ["Haircut", "Consultation"]},
    {"name": "Sam Rivera", "email": "sam@example.com", "services": ["Haircut", "Colour", "Consultation"]},
]

CLIENTS = [
    {"first_name": "Jordan", "last_name": "Lee", "email": "jordan.lee@example.com", "phone": "+15551230001"},
    {"first_name": "Taylor", "last_name": "Kim", "email": "taylor.kim@example.com", "phone": "+15551230002"},
]

# Monday to Friday, 09:00-17:00
WEEKDAY_HOURS = [(day, "09:00", "17:00") for day in range(5)]


def seed():
    Base.metadata.create_all(bind=engine, checkfirst=True)
    db = SessionLocal()

    try:
        if db.query(Provider).count():
            logger.info("ℹ️ Providers already exist, skipping seed")
            return

        services = {}
        for data in SERVICES:
            service = Service(**data)
            db.add(service)
            services[service.name] = service
        logger.info(f"Added {len(services)} services")

        for data in PROVIDERS:
            provider = Provider(
                name=data["name"],
                email=data["email"],
                is_active=True,
                services=[services[name] for name in data["services"]],
            )
            db.add(provider)
            db.flush()
            for day, start, end in WEEKDAY_HOURS:
                db.add(
                    AvailabilityRule(
                        provider_id=provider.id,
                        day_of_week=day,
                        start_time=start,
                        end_time=end,
                        is_recurring=True,
                    )
                )
            logger.info(f"Added provider {provider.name} with weekday hours")

        for data in CLIENTS:
            db.add(Client(**data))
        logger.info(f"Added {len(CLIENTS)} clients")

        db.commit()
        logger.info("✅ Sample data seeded successfully!")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    try:
        seed()
    except Exception as e:
        logger.error(f"❌ Seeding failed: {e}")
        sys.exit(1)
