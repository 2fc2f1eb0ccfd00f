"""
Booking store backed by a PostgREST-style HTTP table.
"""

import asyncio
import logging
from typing import Any, Dict, List

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import BookingNotFoundError, BookingStoreError, SlotConflictError
from ..domain.models import BookingInterval, BookingStatus

logger = logging.getLogger(__name__)


class RestBookingStore:
    """
    Client for the hosted ``appointments`` table.

    The table is expected to carry an exclusion constraint on
    (professional_id, time range); a violation comes back as
    ``409 Conflict`` and is raised as SlotConflictError.
    """

    COLUMNS = "id,professional_id,start_time,end_time,status"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "appointments",
        timezone: str = "America/Sao_Paulo",
        session: requests.Session | None = None,
        timeout: float = 30,
    ):
        """
        Initialize the store client.

        Args:
            base_url: Project URL, e.g. ``https://xyz.supabase.co``
            api_key: Key sent both as ``apikey`` and bearer token
            table: Table holding the appointments
            timezone: IANA timezone returned bookings are converted to
            session: Optional pre-configured requests session
            timeout: Per-request timeout in seconds
        """
        self.url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.timezone = timezone
        self.timeout = timeout
        self._session = session or requests.Session()
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    async def fetch_bookings(
        self,
        professional_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BookingInterval]:
        params = {
            "select": self.COLUMNS,
            "professional_id": f"eq.{professional_id}",
            "start_time": f"lt.{range_end.to_iso8601_string()}",
            "end_time": f"gt.{range_start.to_iso8601_string()}",
            "order": "start_time",
        }
        rows = await asyncio.to_thread(self._request, "GET", params=params)
        return self._parse_rows(rows)

    async def get_booking(self, booking_id: str) -> BookingInterval:
        params = {"select": self.COLUMNS, "id": f"eq.{booking_id}"}
        rows = await asyncio.to_thread(self._request, "GET", params=params)

        bookings = self._parse_rows(rows)
        if not bookings:
            raise BookingNotFoundError(f"Booking not found: {booking_id}")
        return bookings[0]

    async def create_booking(
        self,
        professional_id: str,
        start: DateTime,
        end: DateTime,
        **metadata: Any,
    ) -> str:
        payload = {
            **metadata,
            "professional_id": professional_id,
            "start_time": start.to_iso8601_string(),
            "end_time": end.to_iso8601_string(),
            "duration_minutes": int((end - start).total_seconds() / 60),
            "status": BookingStatus.SCHEDULED.value,
        }
        rows = await asyncio.to_thread(self._request, "POST", payload=payload)

        if not rows:
            raise BookingStoreError("Store did not return the created booking")
        return str(rows[0]["id"])

    async def reschedule_booking(self, booking_id: str, new_start: DateTime, new_end: DateTime) -> None:
        payload = {
            "start_time": new_start.to_iso8601_string(),
            "end_time": new_end.to_iso8601_string(),
        }
        rows = await asyncio.to_thread(
            self._request, "PATCH", params={"id": f"eq.{booking_id}"}, payload=payload
        )

        if not rows:
            raise BookingNotFoundError(f"Booking not found: {booking_id}")

    def _request(
        self,
        method: str,
        params: Dict[str, str] | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> List[Dict[str, Any]]:
        try:
            response = self._session.request(
                method,
                self.url,
                headers=self.headers,
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise BookingStoreError(f"Booking store request failed: {e}") from e

        if response.status_code == 409:
            raise SlotConflictError("This time was just taken, pick another")

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise BookingStoreError(f"Booking store answered {response.status_code}: {e}") from e

        if not response.content:
            return []
        return response.json()

    def _parse_rows(self, rows: List[Dict[str, Any]]) -> List[BookingInterval]:
        """
        Parse table rows into BookingInterval objects.

        Row format:
        {
            "id": "...",
            "professional_id": "...",
            "start_time": "2031-03-10T10:00:00+00:00",
            "end_time": "2031-03-10T10:30:00+00:00",
            "status": "agendado"
        }
        """
        bookings: List[BookingInterval] = []

        for row in rows:
            try:
                bookings.append(
                    BookingInterval(
                        start=self._parse_datetime(row["start_time"]),
                        end=self._parse_datetime(row["end_time"]),
                        booking_id=str(row["id"]),
                        professional_id=str(row.get("professional_id") or ""),
                        status=BookingStatus(row.get("status") or BookingStatus.SCHEDULED.value),
                    )
                )
            except (KeyError, ValueError) as e:
                logger.warning("Could not parse booking row %r: %s", row, e)

        return bookings

    def _parse_datetime(self, value: str) -> DateTime:
        dt = pendulum.parse(value)

        if isinstance(dt, DateTime):
            return dt.in_timezone(self.timezone)

        raise ValueError(f"Could not parse datetime: {value}")
