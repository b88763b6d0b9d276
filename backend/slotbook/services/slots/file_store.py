# backend/slotbook/services/slots/file_store.py
"""
JSON file slot store.

File layout:
    {
      "next_slot_id": 3,
      "next_booking_id": 2,
      "slots":    [{"id", "date", "time", "booked", "booked_by": {...} | null}],
      "bookings": [{"id", "slot_id", "date", "time", "name", "phone", "note", "booked_at"}]
    }

Every mutation holds the key lock slot:{date}:{time} for its whole
read-decide-write sequence. Only the final write also takes the document
lock, because all keys share one file: the document is reloaded under it,
the change applied and the file atomically replaced. Rejections never touch
the document lock.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .base import SlotStore
from .domain import Booking, Customer, Outcome, Slot, SlotError
from .locks import KeyLocks, LocalKeyLocks, slot_lock_name

logger = logging.getLogger(__name__)


class CorruptStateError(ValueError):
    """Slots file exists but cannot be understood."""


def _empty_document() -> dict:
    return {"next_slot_id": 1, "next_booking_id": 1, "slots": [], "bookings": []}


def _slot_from_dict(item: dict) -> Slot:
    booked_by = None
    raw = item.get("booked_by")
    if item.get("booked") and raw:
        booked_by = Customer(
            name=raw["name"],
            phone=raw.get("phone"),
            note=raw.get("note"),
            booked_at=datetime.fromisoformat(raw["booked_at"]),
        )
    return Slot(
        id=int(item["id"]),
        date=item["date"],
        time=item["time"],
        booked=bool(item.get("booked")),
        booked_by=booked_by,
    )


def _booking_from_dict(item: dict) -> Booking:
    return Booking(
        id=int(item["id"]),
        slot_id=int(item["slot_id"]),
        date=item["date"],
        time=item["time"],
        name=item["name"],
        phone=item.get("phone"),
        note=item.get("note"),
        booked_at=datetime.fromisoformat(item["booked_at"]),
    )


def _find(doc: dict, date: str, time: str) -> Optional[dict]:
    for item in doc["slots"]:
        if item["date"] == date and item["time"] == time:
            return item
    return None


class JsonFileSlotStore(SlotStore):
    backend_name = "file"
    storage_errors = (OSError, ValueError)

    DOCUMENT_LOCK = "slots:document"

    def __init__(self, path: str | Path, locks: KeyLocks | None = None):
        self.path = Path(path)
        self.locks = locks or LocalKeyLocks()

    # ── Persistence ──────────────────────────────────────────────────────

    def _load(self) -> dict:
        if not self.path.exists():
            return _empty_document()

        with open(self.path, "r", encoding="utf-8") as f:
            raw = json.load(f)

        try:
            doc = {
                "next_slot_id": int(raw["next_slot_id"]),
                "next_booking_id": int(raw["next_booking_id"]),
                "slots": list(raw["slots"]),
                "bookings": list(raw["bookings"]),
            }
            for item in doc["slots"]:
                _slot_from_dict(item)
            for item in doc["bookings"]:
                _booking_from_dict(item)
        except (KeyError, TypeError, AttributeError) as e:
            raise CorruptStateError(f"Malformed slots file {self.path}: {e}") from e
        return doc

    def _save(self, doc: dict) -> None:
        folder = self.path.parent
        folder.mkdir(parents=True, exist_ok=True)

        # Atomic write: readers see the old or the new file, never a torn one
        with tempfile.NamedTemporaryFile(
            "w", delete=False, encoding="utf-8", dir=folder, suffix=".tmp"
        ) as tf:
            json.dump(doc, tf, ensure_ascii=False, indent=2)
            tf.flush()
            os.fsync(tf.fileno())
            tmp_name = tf.name

        try:
            os.replace(tmp_name, self.path)
        except OSError:
            os.unlink(tmp_name)
            raise

    def _commit(self, mutate: Callable[[dict], Outcome]) -> Outcome:
        """
        Reload, apply `mutate` and atomically replace the file.

        DOCUMENT_LOCK is shared by all slots but covers only this
        reload-and-replace step. The caller already holds the key lock and has
        made its decision; rejections return before reaching here.
        """
        with self.locks.hold(self.DOCUMENT_LOCK):
            doc = self._load()
            outcome = mutate(doc)
            if outcome.ok:
                self._save(doc)
            return outcome

    # ── Primitives ───────────────────────────────────────────────────────

    def _list_slots(self, date: Optional[str]) -> Outcome[list[Slot]]:
        slots = [_slot_from_dict(item) for item in self._load()["slots"]]
        if date:
            slots = [s for s in slots if s.date == date]
        slots.sort(key=lambda s: s.key)
        return Outcome.success(slots)

    def _add_slot(self, date: str, time: str) -> Outcome[Slot]:
        def insert(doc: dict) -> Outcome[Slot]:
            if _find(doc, date, time) is not None:
                return Outcome.failure(SlotError.ALREADY_EXISTS)
            item = {
                "id": doc["next_slot_id"],
                "date": date,
                "time": time,
                "booked": False,
                "booked_by": None,
            }
            doc["next_slot_id"] += 1
            doc["slots"].append(item)
            return Outcome.success(_slot_from_dict(item))

        with self.locks.hold(slot_lock_name(date, time)):
            if _find(self._load(), date, time) is not None:
                return Outcome.failure(SlotError.ALREADY_EXISTS)
            return self._commit(insert)

    def _delete_slot(self, date: str, time: str) -> Outcome[Slot]:
        def remove(doc: dict) -> Outcome[Slot]:
            item = _find(doc, date, time)
            if item is None:
                return Outcome.failure(SlotError.NOT_FOUND)
            doc["slots"].remove(item)
            return Outcome.success(_slot_from_dict(item))

        with self.locks.hold(slot_lock_name(date, time)):
            if _find(self._load(), date, time) is None:
                return Outcome.failure(SlotError.NOT_FOUND)
            return self._commit(remove)

    def _book_slot(
        self,
        date: str,
        time: str,
        name: str,
        phone: Optional[str],
        note: Optional[str],
    ) -> Outcome[Slot]:
        booked_at = datetime.now(timezone.utc)

        def reserve(doc: dict) -> Outcome[Slot]:
            item = _find(doc, date, time)
            if item is None:
                return Outcome.failure(SlotError.NOT_FOUND)
            if item.get("booked"):
                return Outcome.failure(SlotError.ALREADY_BOOKED)

            item["booked"] = True
            item["booked_by"] = {
                "name": name,
                "phone": phone,
                "note": note,
                "booked_at": booked_at.isoformat(),
            }
            doc["bookings"].append({
                "id": doc["next_booking_id"],
                "slot_id": item["id"],
                "date": date,
                "time": time,
                "name": name,
                "phone": phone,
                "note": note,
                "booked_at": booked_at.isoformat(),
            })
            doc["next_booking_id"] += 1
            return Outcome.success(_slot_from_dict(item))

        with self.locks.hold(slot_lock_name(date, time)):
            item = _find(self._load(), date, time)
            if item is None:
                return Outcome.failure(SlotError.NOT_FOUND)
            if item.get("booked"):
                return Outcome.failure(SlotError.ALREADY_BOOKED)
            return self._commit(reserve)

    def _list_bookings(self, date: Optional[str]) -> Outcome[list[Booking]]:
        bookings = [_booking_from_dict(item) for item in self._load()["bookings"]]
        if date:
            bookings = [b for b in bookings if b.date == date]
        bookings.sort(key=lambda b: b.id)
        return Outcome.success(bookings)
