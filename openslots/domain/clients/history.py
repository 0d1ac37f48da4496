"""
Client visit history updates driven by appointment lifecycle events.

These helpers only mutate the Client in the caller's session; the caller
commits them together with the appointment change.
"""

from datetime import date

from ...models import Client


def record_booking(client: Client, appointment_date: date) -> None:
    """Set the first visit date on a client's first booking"""
    if client.first_visit_date is None:
        client.first_visit_date = appointment_date


def record_completed_visit(client: Client, appointment_date: date) -> None:
    client.last_visit_date = appointment_date


def record_no_show(client: Client) -> int:
    client.no_show_count = (client.no_show_count or 0) + 1
    return client.no_show_count
