# backend/slotbook/routers/slots.py
"""
Slots API endpoints.

GET  /api/times              - list slots (optionally for one date)
POST /api/admin/add-time     - create a slot
POST /api/admin/delete-time  - delete a slot
POST /api/book               - book a slot
GET  /api/admin/bookings     - booking audit trail
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..schemas.slots import (
    BookingCreate,
    BookingRead,
    ErrorResponse,
    MessageResponse,
    SlotKey,
    SlotMessage,
    SlotRead,
)
from ..services.slots import Outcome, SlotError, SlotStore

router = APIRouter(prefix="/api", tags=["slots"])

ERROR_STATUS = {
    SlotError.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    SlotError.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    SlotError.ALREADY_BOOKED: status.HTTP_409_CONFLICT,
    SlotError.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    SlotError.STORAGE_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _errors(*codes: int) -> dict:
    """OpenAPI `responses` entry: 400 and 500 everywhere, plus `codes`."""
    codes = (status.HTTP_400_BAD_REQUEST, *codes, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return {code: {"model": ErrorResponse} for code in codes}


def get_store(request: Request) -> SlotStore:
    return request.app.state.store


def _unwrap(outcome: Outcome):
    if not outcome.ok:
        raise HTTPException(status_code=ERROR_STATUS[outcome.error], detail=outcome.error.value)
    return outcome.value


@router.get("/times", response_model=list[SlotRead], responses=_errors())
def list_times(date: Optional[str] = None, store: SlotStore = Depends(get_store)):
    slots = _unwrap(store.list_slots(date))
    return [SlotRead.model_validate(s) for s in slots]


@router.post("/admin/add-time", response_model=SlotMessage, responses=_errors(status.HTTP_409_CONFLICT))
def add_time(data: SlotKey, store: SlotStore = Depends(get_store)):
    slot = _unwrap(store.add_slot(data.date, data.time))
    return SlotMessage(message="Slot added", slot=SlotRead.model_validate(slot))


@router.post("/admin/delete-time", response_model=MessageResponse, responses=_errors(status.HTTP_404_NOT_FOUND))
def delete_time(data: SlotKey, store: SlotStore = Depends(get_store)):
    _unwrap(store.delete_slot(data.date, data.time))
    return MessageResponse(message="Slot deleted")


@router.post(
    "/book",
    response_model=SlotMessage,
    responses=_errors(status.HTTP_404_NOT_FOUND, status.HTTP_409_CONFLICT),
)
def book(data: BookingCreate, store: SlotStore = Depends(get_store)):
    slot = _unwrap(store.book_slot(
        data.date,
        data.time,
        data.name,
        phone=data.phone,
        note=data.note,
    ))
    return SlotMessage(message="Booking confirmed", slot=SlotRead.model_validate(slot))


@router.get("/admin/bookings", response_model=list[BookingRead], responses=_errors())
def list_bookings(date: Optional[str] = None, store: SlotStore = Depends(get_store)):
    bookings = _unwrap(store.list_bookings(date))
    return [BookingRead.model_validate(b) for b in bookings]
