# backend/slotbook/services/slots/sql_store.py
"""
Database-backed slot store.

Uniqueness of (date, time) is enforced by the ux_times_date_time constraint:
add_slot simply inserts and maps IntegrityError to ALREADY_EXISTS.

Booking runs in one transaction:
    SELECT ... FOR UPDATE                       (row lock on PostgreSQL)
    UPDATE times SET booked = true ... WHERE id = :id AND booked = false
    INSERT INTO bookings ...
    COMMIT
The conditional UPDATE is checked by rowcount, so a second writer that got
past the SELECT (SQLite ignores FOR UPDATE) still loses with ALREADY_BOOKED.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ...models.slots import Bookings as DBBookings, Times as DBTimes
from .base import SlotStore
from .domain import Booking, Customer, Outcome, Slot, SlotError

logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; stored values are always UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_slot(row: DBTimes) -> Slot:
    booked_by = None
    if row.booked:
        booked_by = Customer(
            name=row.name,
            phone=row.phone,
            note=row.note,
            booked_at=_as_utc(row.booked_at),
        )
    return Slot(
        id=row.id,
        date=row.date,
        time=row.time,
        booked=bool(row.booked),
        booked_by=booked_by,
    )


def _to_booking(row: DBBookings) -> Booking:
    return Booking(
        id=row.id,
        slot_id=row.time_id,
        date=row.date,
        time=row.time,
        name=row.name,
        phone=row.phone,
        note=row.note,
        booked_at=_as_utc(row.booked_at),
    )


class SqlSlotStore(SlotStore):
    backend_name = "database"
    storage_errors = (SQLAlchemyError,)

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _find(self, db: Session, date: str, time: str, lock: bool = False) -> Optional[DBTimes]:
        q = db.query(DBTimes).filter(DBTimes.date == date, DBTimes.time == time)
        if lock:
            q = q.with_for_update()
        return q.first()

    def _list_slots(self, date: Optional[str]) -> Outcome[list[Slot]]:
        with self.session_factory() as db:
            q = db.query(DBTimes)
            if date:
                q = q.filter(DBTimes.date == date)
            rows = q.order_by(DBTimes.date, DBTimes.time).all()
            return Outcome.success([_to_slot(r) for r in rows])

    def _add_slot(self, date: str, time: str) -> Outcome[Slot]:
        with self.session_factory() as db:
            obj = DBTimes(date=date, time=time, booked=False)
            db.add(obj)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                return Outcome.failure(SlotError.ALREADY_EXISTS)
            return Outcome.success(_to_slot(obj))

    def _delete_slot(self, date: str, time: str) -> Outcome[Slot]:
        with self.session_factory() as db:
            obj = self._find(db, date, time, lock=True)
            if obj is None:
                return Outcome.failure(SlotError.NOT_FOUND)

            slot = _to_slot(obj)
            result = db.execute(delete(DBTimes).where(DBTimes.id == obj.id))
            if result.rowcount == 0:
                db.rollback()
                return Outcome.failure(SlotError.NOT_FOUND)

            db.commit()
            return Outcome.success(slot)

    def _book_slot(
        self,
        date: str,
        time: str,
        name: str,
        phone: Optional[str],
        note: Optional[str],
    ) -> Outcome[Slot]:
        with self.session_factory() as db:
            obj = self._find(db, date, time, lock=True)
            if obj is None:
                db.rollback()
                return Outcome.failure(SlotError.NOT_FOUND)
            if obj.booked:
                db.rollback()
                return Outcome.failure(SlotError.ALREADY_BOOKED)

            slot_id = obj.id
            booked_at = datetime.now(timezone.utc)
            result = db.execute(
                update(DBTimes)
                .where(DBTimes.id == slot_id, DBTimes.booked.is_(False))
                .values(booked=True, name=name, phone=phone, note=note, booked_at=booked_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                # Someone else booked or deleted it between SELECT and UPDATE
                db.rollback()
                still_there = db.query(DBTimes.id).filter(DBTimes.id == slot_id).first()
                return Outcome.failure(
                    SlotError.ALREADY_BOOKED if still_there else SlotError.NOT_FOUND
                )

            db.add(DBBookings(
                time_id=slot_id,
                date=date,
                time=time,
                name=name,
                phone=phone,
                note=note,
                booked_at=booked_at,
            ))
            db.commit()

            return Outcome.success(Slot(
                id=slot_id,
                date=date,
                time=time,
                booked=True,
                booked_by=Customer(name=name, phone=phone, note=note, booked_at=booked_at),
            ))

    def _list_bookings(self, date: Optional[str]) -> Outcome[list[Booking]]:
        with self.session_factory() as db:
            q = db.query(DBBookings)
            if date:
                q = q.filter(DBBookings.date == date)
            rows = q.order_by(DBBookings.id).all()
            return Outcome.success([_to_booking(r) for r in rows])

    def close(self) -> None:
        bind = self.session_factory.kw.get("bind")
        if bind is not None:
            bind.dispose()
