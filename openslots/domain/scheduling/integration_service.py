"""
Collaborators the scheduling engine reports to after a mutation commits:
the activity log and external calendar sync. Both are best-effort from the
engine's point of view; their failures become warnings, never rollbacks.
"""

import logging
from typing import Any, Callable, Optional, Protocol

from sqlalchemy.orm import Session

from ...models import ActivityLog, Appointment

logger = logging.getLogger(__name__)


class ActivityLogger(Protocol):
    def log(
        self,
        action: str,
        appointment_id: Optional[int],
        client_id: Optional[int],
        provider_id: Optional[int],
        previous_value: Any,
        new_value: Any,
        note: Optional[str] = None,
    ) -> None: ...


class CalendarSync(Protocol):
    def create_event(self, appointment: Appointment) -> Optional[str]: ...

    def update_event(self, event_id: str, appointment: Appointment) -> None: ...

    def delete_event(self, event_id: str) -> None: ...


class DatabaseActivityLogger:
    """Writes activity entries in a session of its own so a failed write cannot touch the booking"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def log(
        self,
        action: str,
        appointment_id: Optional[int],
        client_id: Optional[int],
        provider_id: Optional[int],
        previous_value: Any,
        new_value: Any,
        note: Optional[str] = None,
    ) -> None:
        db = self.session_factory()
        try:
            db.add(
                ActivityLog(
                    action=action,
                    appointment_id=appointment_id,
                    client_id=client_id,
                    provider_id=provider_id,
                    previous_value=previous_value,
                    new_value=new_value,
                    note=note,
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class NullCalendarSync:
    """Used when no external calendar is connected"""

    def create_event(self, appointment: Appointment) -> Optional[str]:
        return None

    def update_event(self, event_id: str, appointment: Appointment) -> None:
        return None

    def delete_event(self, event_id: str) -> None:
        return None


def get_calendar_sync(config) -> CalendarSync:
    """Google Calendar when credentials are configured, otherwise a no-op"""
    from ...config import GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REFRESH_TOKEN

    if GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET and GOOGLE_REFRESH_TOKEN:
        from ...services.google_calendar_service import GoogleCalendarSync

        return GoogleCalendarSync(timezone=config.timezone)

    logger.info("ℹ️ Google Calendar not configured, calendar sync disabled")
    return NullCalendarSync()
