# backend/slotbook/services/slots/base.py
"""
SlotStore contract shared by the database and JSON file backends.

Public methods validate input and convert storage failures into typed
outcomes; subclasses implement the `_`-prefixed primitives and declare which
exceptions count as storage failures in `storage_errors`.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Optional

from redis.exceptions import RedisError

from .domain import Booking, Outcome, Slot, SlotError
from .locks import LockTimeout

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class InvalidInput(ValueError):
    pass


def clean_optional(value: Any) -> Optional[str]:
    """None, empty and whitespace-only strings all mean "absent"."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput("expected a string")
    value = value.strip()
    return value or None


def clean_required(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} required")
    return value.strip()


def validate_date(value: str) -> str:
    if not _DATE_RE.match(value):
        raise InvalidInput("date must be YYYY-MM-DD")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError as e:
        raise InvalidInput("date must be a real calendar date") from e
    return value


def validate_time(value: str) -> str:
    if not _TIME_RE.match(value):
        raise InvalidInput("time must be HH:MM")
    return value


class SlotStore(ABC):
    backend_name: str = "abstract"
    storage_errors: tuple[type[BaseException], ...] = ()

    # ── Public API ───────────────────────────────────────────────────────

    def list_slots(self, date: Optional[str] = None) -> Outcome[list[Slot]]:
        try:
            date = clean_optional(date)
        except InvalidInput as e:
            return Outcome.failure(SlotError.INVALID_INPUT, str(e))
        return self._guard("list_slots", self._list_slots, date)

    def add_slot(self, date: Any, time: Any) -> Outcome[Slot]:
        try:
            date = validate_date(clean_required("date", date))
            time = validate_time(clean_required("time", time))
        except InvalidInput as e:
            return Outcome.failure(SlotError.INVALID_INPUT, str(e))
        return self._guard("add_slot", self._add_slot, date, time)

    def delete_slot(self, date: Any, time: Any) -> Outcome[Slot]:
        try:
            date = clean_required("date", date)
            time = clean_required("time", time)
        except InvalidInput as e:
            return Outcome.failure(SlotError.INVALID_INPUT, str(e))
        return self._guard("delete_slot", self._delete_slot, date, time)

    def book_slot(
        self,
        date: Any,
        time: Any,
        name: Any,
        phone: Any = None,
        note: Any = None,
    ) -> Outcome[Slot]:
        try:
            date = clean_required("date", date)
            time = clean_required("time", time)
            name = clean_required("name", name)
            phone = clean_optional(phone)
            note = clean_optional(note)
        except InvalidInput as e:
            return Outcome.failure(SlotError.INVALID_INPUT, str(e))
        return self._guard("book_slot", self._book_slot, date, time, name, phone, note)

    def list_bookings(self, date: Optional[str] = None) -> Outcome[list[Booking]]:
        try:
            date = clean_optional(date)
        except InvalidInput as e:
            return Outcome.failure(SlotError.INVALID_INPUT, str(e))
        return self._guard("list_bookings", self._list_bookings, date)

    def close(self) -> None:
        """Release backend resources."""

    # ── Backend primitives ───────────────────────────────────────────────

    @abstractmethod
    def _list_slots(self, date: Optional[str]) -> Outcome[list[Slot]]: ...

    @abstractmethod
    def _add_slot(self, date: str, time: str) -> Outcome[Slot]: ...

    @abstractmethod
    def _delete_slot(self, date: str, time: str) -> Outcome[Slot]: ...

    @abstractmethod
    def _book_slot(
        self,
        date: str,
        time: str,
        name: str,
        phone: Optional[str],
        note: Optional[str],
    ) -> Outcome[Slot]: ...

    @abstractmethod
    def _list_bookings(self, date: Optional[str]) -> Outcome[list[Booking]]: ...

    # ── Internals ────────────────────────────────────────────────────────

    def _guard(self, operation: str, fn: Callable[..., Outcome], *args) -> Outcome:
        try:
            outcome = fn(*args)
        except (LockTimeout, RedisError, *self.storage_errors):
            logger.exception("%s failed on %s store", operation, self.backend_name)
            return Outcome.failure(SlotError.STORAGE_UNAVAILABLE)

        if outcome.ok:
            logger.debug("%s ok on %s store", operation, self.backend_name)
        else:
            logger.info("%s rejected: %s (%s)", operation, outcome.error.value, args[:2])
        return outcome
