# backend/slotbook/services/slots/domain.py
"""
Slot store value types and typed outcomes.

Every SlotStore operation returns an Outcome: either `value` is set and
`error` is None, or `error` carries a SlotError code. Storage exceptions
never escape the store.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class SlotError(str, Enum):
    INVALID_INPUT = "invalid_input"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    ALREADY_BOOKED = "already_booked"
    STORAGE_UNAVAILABLE = "storage_unavailable"


@dataclass(frozen=True)
class Customer:
    """Who booked a slot and when."""
    name: str
    phone: Optional[str]
    note: Optional[str]
    booked_at: datetime


@dataclass(frozen=True)
class Slot:
    id: int
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    booked: bool = False
    booked_by: Optional[Customer] = None

    @property
    def key(self) -> tuple[str, str]:
        return self.date, self.time


@dataclass(frozen=True)
class Booking:
    """Append-only record of a successful booking."""
    id: int
    slot_id: int
    date: str
    time: str
    name: str
    phone: Optional[str]
    note: Optional[str]
    booked_at: datetime


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[SlotError] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SlotError, detail: Optional[str] = None) -> "Outcome[T]":
        return cls(error=error, detail=detail)
