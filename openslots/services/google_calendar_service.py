"""
Google Calendar Service
Handles calendar event creation, updates, and deletion for appointments
"""
import logging
from datetime import datetime, timedelta
from threading import Lock
from typing import Optional

import httpx

from ..config import (
    GOOGLE_CALENDAR_ID,
    GOOGLE_CALENDAR_TIMEOUT,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_REFRESH_TOKEN,
)
from ..domain.scheduling.time_calculator import local_datetime, time_to_minutes
from ..models import Appointment

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"


class CalendarSyncError(Exception):
    """Google Calendar rejected or failed a request"""


class GoogleCalendarSync:
    """Calendar collaborator backed by the Google Calendar REST API"""

    def __init__(
        self,
        timezone: str,
        calendar_id: str = GOOGLE_CALENDAR_ID,
        client_id: Optional[str] = GOOGLE_CLIENT_ID,
        client_secret: Optional[str] = GOOGLE_CLIENT_SECRET,
        refresh_token: Optional[str] = GOOGLE_REFRESH_TOKEN,
        http_client: Optional[httpx.Client] = None,
    ):
        self.timezone = timezone
        self.calendar_id = calendar_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        # Every request is bounded so a slow Google API can never hang a booking
        self.http = http_client or httpx.Client(timeout=GOOGLE_CALENDAR_TIMEOUT)
        self._access_token: Optional[str] = None
        self._token_expires_at = datetime.min
        self._token_lock = Lock()

    def _get_access_token(self) -> str:
        """Get a valid access token, refreshing if it expires within 5 minutes"""
        with self._token_lock:
            if self._access_token and self._token_expires_at > datetime.utcnow() + timedelta(minutes=5):
                return self._access_token

            logger.info("🔄 Google Calendar token expired, refreshing...")
            response = self.http.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": self.refresh_token,
                    "grant_type": "refresh_token",
                },
            )
            if response.status_code != 200:
                logger.error(f"❌ Token refresh failed: {response.text}")
                raise CalendarSyncError("Google Calendar token refresh failed")

            tokens = response.json()
            access_token = tokens.get("access_token")
            if not access_token:
                raise CalendarSyncError("No access token in refresh response")

            self._access_token = access_token
            self._token_expires_at = datetime.utcnow() + timedelta(seconds=tokens.get("expires_in", 3600))
            logger.info("✅ Google Calendar token refreshed successfully")
            return access_token

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self._get_access_token()}"}

    def _event_body(self, appointment: Appointment) -> dict:
        start_minutes = time_to_minutes(appointment.start_time)
        start = local_datetime(appointment.appointment_date, start_minutes, self.timezone)
        end = start + timedelta(minutes=appointment.duration_minutes)

        client = appointment.client
        client_name = " ".join(p for p in [client.first_name, client.last_name] if p) if client else "Client"
        service_name = appointment.service.name if appointment.service else "Appointment"

        body = {
            "summary": f"{service_name} - {client_name}",
            "description": f"{service_name} with {client_name}",
            "start": {"dateTime": start.isoformat(), "timeZone": self.timezone},
            "end": {"dateTime": end.isoformat(), "timeZone": self.timezone},
        }
        if appointment.notes:
            body["description"] += f"\n\nNotes: {appointment.notes}"
        return body

    def create_event(self, appointment: Appointment) -> Optional[str]:
        """Create an event and return its Google Calendar id"""
        response = self.http.post(
            f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events",
            headers=self._headers(),
            json=self._event_body(appointment),
        )
        if response.status_code not in [200, 201]:
            logger.error(f"❌ Failed to create calendar event: {response.text}")
            raise CalendarSyncError(f"Calendar event creation failed ({response.status_code})")

        event_id = response.json().get("id")
        logger.info(f"✅ Google Calendar event created: {event_id}")
        return event_id

    def update_event(self, event_id: str, appointment: Appointment) -> None:
        response = self.http.put(
            f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events/{event_id}",
            headers=self._headers(),
            json=self._event_body(appointment),
        )
        if response.status_code != 200:
            logger.error(f"❌ Failed to update calendar event: {response.text}")
            raise CalendarSyncError(f"Calendar event update failed ({response.status_code})")
        logger.info(f"✅ Google Calendar event updated: {event_id}")

    def delete_event(self, event_id: str) -> None:
        response = self.http.delete(
            f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events/{event_id}",
            headers=self._headers(),
        )
        # 410 Gone: already deleted on the Google side
        if response.status_code not in [200, 204, 410]:
            logger.error(f"❌ Failed to delete calendar event: {response.text}")
            raise CalendarSyncError(f"Calendar event deletion failed ({response.status_code})")
        logger.info(f"✅ Google Calendar event deleted: {event_id}")
