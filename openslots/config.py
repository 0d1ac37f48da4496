import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./openslots.db")

# Redis (availability cache). Leave unset to run without caching.
REDIS_URL = os.getenv("REDIS_URL")

# Business-wide scheduling settings
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/New_York")
DEFAULT_SLOT_GRANULARITY = int(os.getenv("DEFAULT_SLOT_GRANULARITY", "30"))
CHECK_IN_OPENS_MINUTES = int(os.getenv("CHECK_IN_OPENS_MINUTES", "60"))
CHECK_IN_CLOSES_MINUTES = int(os.getenv("CHECK_IN_CLOSES_MINUTES", "30"))
NO_SHOW_GRACE_MINUTES = int(os.getenv("NO_SHOW_GRACE_MINUTES", "30"))
PROVIDER_LOCK_TIMEOUT = float(os.getenv("PROVIDER_LOCK_TIMEOUT", "10"))
AVAILABILITY_CACHE_TTL = int(os.getenv("AVAILABILITY_CACHE_TTL", "300"))

# Google Calendar sync (optional)
# The refresh token is issued once through the OAuth consent flow and reused here.
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_REFRESH_TOKEN = os.getenv("GOOGLE_REFRESH_TOKEN")
GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID", "primary")
GOOGLE_CALENDAR_TIMEOUT = float(os.getenv("GOOGLE_CALENDAR_TIMEOUT", "10"))


class SchedulingConfig(BaseModel):
    """Engine tunables, passed explicitly into the scheduling engine"""

    model_config = ConfigDict(frozen=True)

    timezone: str = "America/New_York"
    slot_granularity_minutes: int = 30
    check_in_opens_minutes: int = 60
    check_in_closes_minutes: int = 30
    no_show_grace_minutes: int = 30
    lock_timeout_seconds: float = 10.0
    cache_ttl_seconds: int = 300

    @field_validator("slot_granularity_minutes")
    @classmethod
    def validate_granularity(cls, v):
        if v <= 0:
            raise ValueError("Slot granularity must be greater than 0")
        return v

    @field_validator("check_in_opens_minutes", "check_in_closes_minutes", "no_show_grace_minutes")
    @classmethod
    def validate_window(cls, v):
        if v < 0:
            raise ValueError("Grace windows cannot be negative")
        return v


@lru_cache
def get_scheduling_config() -> SchedulingConfig:
    return SchedulingConfig(
        timezone=BUSINESS_TIMEZONE,
        slot_granularity_minutes=DEFAULT_SLOT_GRANULARITY,
        check_in_opens_minutes=CHECK_IN_OPENS_MINUTES,
        check_in_closes_minutes=CHECK_IN_CLOSES_MINUTES,
        no_show_grace_minutes=NO_SHOW_GRACE_MINUTES,
        lock_timeout_seconds=PROVIDER_LOCK_TIMEOUT,
        cache_ttl_seconds=AVAILABILITY_CACHE_TTL,
    )
