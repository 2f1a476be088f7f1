"""
Reservation store backed by a hosted Postgres REST API (Supabase / PostgREST).
"""

import logging
import re
from collections import Counter
from datetime import date
from typing import Any, Dict, List

import pendulum
import requests

from ..config import StoreConfig
from ..domain.exceptions import BusinessNotFoundError, PersistenceError
from ..domain.models import (
    Business,
    BusinessType,
    NewReservation,
    Reservation,
    parse_iso_date,
)

logger = logging.getLogger(__name__)

RESERVATION_COLUMNS = "id,restaurant_slug,date,time,guest_name,guest_email,phone,people,note,created_at"

_SERVICE_PATTERN = re.compile(r"Service:\s*([^|]+)", re.IGNORECASE)
_NOTE_PREFIX = re.compile(r"^Notiz:\s*", re.IGNORECASE)


def compose_note(service: str | None, note: str | None) -> str | None:
    """Pack service and free-text note into the single stored note column."""
    parts = [
        f"Service: {service}" if service else None,
        f"Notiz: {note}" if note else None,
    ]
    parts = [part for part in parts if part]
    return " | ".join(parts) if parts else None


def extract_service(stored_note: str | None) -> str | None:
    """Read the service back out of a stored note."""
    if not stored_note:
        return None
    match = _SERVICE_PATTERN.search(stored_note)
    return match.group(1).strip() if match else None


def extract_note(stored_note: str | None) -> str | None:
    """Read the guest's free-text note back out of a stored note."""
    if not stored_note:
        return None
    parts = [
        _NOTE_PREFIX.sub("", part.strip()).strip()
        for part in stored_note.split("|")
        if part.strip() and not part.strip().lower().startswith("service:")
    ]
    return " | ".join(parts) if parts else None


class SupabaseReservationStore:
    """
    REST client for the ``companies`` and ``reservations`` tables.

    Reads are never cached; every count reflects the latest committed state.
    """

    def __init__(self, config: StoreConfig, api_key: str, session: requests.Session | None = None):
        """
        Initialize the store client.

        Args:
            config: Store connection settings
            api_key: Service role or anon key
            session: Optional pre-configured session (used in tests)
        """
        if not config.url:
            raise ValueError("Store URL is not configured (store.url).")

        self.config = config
        self.base_url = f"{config.url}/rest/v1"
        self.session = session or requests.Session()
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @classmethod
    def from_config(cls, config: StoreConfig) -> "SupabaseReservationStore":
        """Create a client using the API key from the environment."""
        return cls(config=config, api_key=config.resolve_api_key())

    def get_business(self, business_id: str) -> Business:
        rows = self._json(self._request(
            "GET",
            self.config.businesses_table,
            params={"slug": f"eq.{business_id}", "select": "*", "limit": "1"},
        ))

        if not rows:
            raise BusinessNotFoundError(business_id)

        row = rows[0]
        return Business(
            business_id=row.get("slug", business_id),
            name=row.get("name") or "",
            hours_text=row.get("hours") or "",
            break_text=row.get("break_hours"),
            slot_capacity=row.get("slot_capacity"),
            business_type=BusinessType.from_raw(row.get("service_type")),
            email=row.get("email"),
        )

    def count_reservations(self, business_id: str, target_date: date, time: str) -> int:
        response = self._request(
            "HEAD",
            self.config.reservations_table,
            params={
                "restaurant_slug": f"eq.{business_id}",
                "date": f"eq.{target_date.isoformat()}",
                "time": f"eq.{time}",
                "select": "id",
            },
            extra_headers={"Prefer": "count=exact"},
        )
        return self._parse_content_range(response.headers.get("Content-Range", ""))

    def count_reservations_by_time(self, business_id: str, target_date: date) -> Dict[str, int]:
        rows = self._json(self._request(
            "GET",
            self.config.reservations_table,
            params={
                "restaurant_slug": f"eq.{business_id}",
                "date": f"eq.{target_date.isoformat()}",
                "select": "time",
            },
        ))
        return dict(Counter(row["time"] for row in rows if row.get("time")))

    def insert_reservation(self, record: NewReservation) -> Reservation:
        guest = record.guest
        payload = {
            "restaurant_slug": record.business.business_id,
            "restaurant_name": record.business.name,
            "restaurant_email": record.business.email,
            "guest_name": guest.name,
            "guest_email": guest.email,
            "phone": guest.phone,
            "people": guest.party_size,
            "note": compose_note(guest.service, guest.note),
            "date": record.date.isoformat(),
            "time": record.time,
        }

        rows = self._json(self._request(
            "POST",
            self.config.reservations_table,
            params={"select": RESERVATION_COLUMNS},
            json=payload,
            extra_headers={"Prefer": "return=representation"},
        ))

        if not rows:
            raise PersistenceError("Insert returned no row", retryable=False)
        return self._row_to_reservation(rows[0], record.business.business_id)

    def list_reservations(self, business_id: str, target_date: date) -> List[Reservation]:
        rows = self._json(self._request(
            "GET",
            self.config.reservations_table,
            params={
                "restaurant_slug": f"eq.{business_id}",
                "date": f"eq.{target_date.isoformat()}",
                "select": RESERVATION_COLUMNS,
                "order": "time.asc",
            },
        ))
        return [self._row_to_reservation(row, business_id) for row in rows]

    def _request(
        self,
        method: str,
        table: str,
        params: Dict[str, str],
        json: Dict[str, Any] | None = None,
        extra_headers: Dict[str, str] | None = None,
    ) -> requests.Response:
        """
        Perform one REST call and map failures to ``PersistenceError``.

        Timeouts, connection problems, 429 and 5xx are retryable; other
        client errors are not.
        """
        url = f"{self.base_url}/{table}"
        headers = {**self.headers, **(extra_headers or {})}
        logger.debug("%s %s %s", method, url, params)

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json,
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            logger.warning("Store request %s %s failed: %s", method, table, e)
            raise PersistenceError(f"Store not reachable: {e}", retryable=True) from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else 0
            logger.warning("Store request %s %s returned HTTP %s", method, table, status)
            raise PersistenceError(
                f"Store request failed with HTTP {status}",
                retryable=status == 429 or status >= 500,
            ) from e
        except requests.exceptions.RequestException as e:
            raise PersistenceError(f"Store request failed: {e}", retryable=False) from e

        return response

    @staticmethod
    def _json(response: requests.Response) -> List[Dict[str, Any]]:
        """Decode a row list from a response body."""
        try:
            data = response.json()
        except ValueError as e:
            raise PersistenceError(f"Store returned invalid JSON: {e}") from e
        if not isinstance(data, list):
            raise PersistenceError("Store returned an unexpected payload (expected a list of rows)")
        return data

    @staticmethod
    def _parse_content_range(header: str) -> int:
        """
        Read the total from a ``Content-Range`` header (``0-2/3`` or ``*/0``).
        """
        _, _, total = header.partition("/")
        try:
            return int(total)
        except ValueError as e:
            raise PersistenceError(f"Unexpected Content-Range header: '{header}'") from e

    @staticmethod
    def _row_to_reservation(row: Dict[str, Any], business_id: str) -> Reservation:
        try:
            created_raw = row.get("created_at")
            return Reservation(
                reservation_id=str(row["id"]),
                business_id=row.get("restaurant_slug") or business_id,
                date=parse_iso_date(row["date"]),
                time=row["time"],
                guest_name=row.get("guest_name") or "",
                guest_email=row.get("guest_email") or None,
                phone=row.get("phone") or None,
                party_size=row.get("people") or None,
                service=extract_service(row.get("note")),
                note=extract_note(row.get("note")),
                created_at=pendulum.parse(created_raw) if created_raw else None,
            )
        except (KeyError, ValueError) as e:
            raise PersistenceError(f"Could not parse reservation row: {e}") from e
