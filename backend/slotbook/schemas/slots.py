# backend/slotbook/schemas/slots.py
"""
Pydantic schemas for slots API.

Request bodies accept missing fields; required-ness is checked by the store so
that every malformed request ends up as the same 400 invalid_input.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SlotKey(BaseModel):
    """Admin add/delete request."""
    date: Optional[str] = None
    time: Optional[str] = None


class BookingCreate(BaseModel):
    date: Optional[str] = None
    time: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    note: Optional[str] = None


class BookedByRead(_CamelModel):
    name: str
    phone: Optional[str] = None
    note: Optional[str] = None
    booked_at: datetime


class SlotRead(_CamelModel):
    id: int
    date: str
    time: str
    booked: bool
    booked_by: Optional[BookedByRead] = None


class BookingRead(_CamelModel):
    id: int
    slot_id: int
    date: str
    time: str
    name: str
    phone: Optional[str] = None
    note: Optional[str] = None
    booked_at: datetime


class SlotMessage(BaseModel):
    message: str
    slot: SlotRead


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
