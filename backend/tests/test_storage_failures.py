from __future__ import annotations

import json
import os
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError

from slotbook.services.slots import JsonFileSlotStore, LocalKeyLocks, SlotError, SqlSlotStore


def test_file_store_persists_across_instances(tmp_path) -> None:
    path = tmp_path / "data" / "slots.json"
    first = JsonFileSlotStore(path)
    first.add_slot("2024-06-01", "10:00")
    first.book_slot("2024-06-01", "10:00", "Alice", note="first visit")

    second = JsonFileSlotStore(path)
    (slot,) = second.list_slots().value
    assert slot.booked_by.name == "Alice"
    assert slot.booked_by.note == "first visit"
    assert second.book_slot("2024-06-01", "10:00", "Bob").error is SlotError.ALREADY_BOOKED

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["next_slot_id"] == 2
    assert raw["next_booking_id"] == 2
    assert raw["bookings"][0]["name"] == "Alice"


def test_file_store_missing_file_is_empty(tmp_path) -> None:
    store = JsonFileSlotStore(tmp_path / "nothing.json")

    assert store.list_slots().value == []
    assert store.list_bookings().value == []
    assert not (tmp_path / "nothing.json").exists()


def test_file_store_corrupt_file_is_storage_unavailable(tmp_path) -> None:
    path = tmp_path / "slots.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileSlotStore(path)

    assert store.list_slots().error is SlotError.STORAGE_UNAVAILABLE
    assert store.add_slot("2024-06-01", "10:00").error is SlotError.STORAGE_UNAVAILABLE
    # Never overwritten with a fresh document.
    assert path.read_text(encoding="utf-8") == "{not json"


def test_file_store_malformed_document_is_storage_unavailable(tmp_path) -> None:
    path = tmp_path / "slots.json"
    path.write_text(json.dumps({"slots": [{"date": "2024-06-01"}]}), encoding="utf-8")
    store = JsonFileSlotStore(path)

    assert store.list_slots().error is SlotError.STORAGE_UNAVAILABLE


def test_file_store_failed_write_leaves_slot_unbooked(tmp_path) -> None:
    path = tmp_path / "slots.json"
    store = JsonFileSlotStore(path, LocalKeyLocks(timeout=1))
    store.add_slot("2024-06-01", "10:00")

    with patch("slotbook.services.slots.file_store.os.replace", side_effect=OSError("disk full")):
        outcome = store.book_slot("2024-06-01", "10:00", "Alice")

    assert outcome.error is SlotError.STORAGE_UNAVAILABLE
    (slot,) = store.list_slots().value
    assert slot.booked is False
    assert store.list_bookings().value == []
    assert [p.name for p in tmp_path.iterdir()] == ["slots.json"]

    # Locks were released; the slot is still bookable.
    assert store.book_slot("2024-06-01", "10:00", "Alice").ok


def test_sql_store_database_errors_are_storage_unavailable() -> None:
    session_factory = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("db down")))
    store = SqlSlotStore(session_factory)

    assert store.list_slots().error is SlotError.STORAGE_UNAVAILABLE
    assert store.add_slot("2024-06-01", "10:00").error is SlotError.STORAGE_UNAVAILABLE
    assert store.delete_slot("2024-06-01", "10:00").error is SlotError.STORAGE_UNAVAILABLE
    assert store.book_slot("2024-06-01", "10:00", "Alice").error is SlotError.STORAGE_UNAVAILABLE
    assert store.list_bookings().error is SlotError.STORAGE_UNAVAILABLE


def test_sql_store_failed_booking_insert_rolls_back(sql_store) -> None:
    sql_store.add_slot("2024-06-01", "10:00")

    with patch("slotbook.services.slots.sql_store.DBBookings", side_effect=OperationalError("INSERT", {}, Exception("gone"))):
        outcome = sql_store.book_slot("2024-06-01", "10:00", "Alice")

    assert outcome.error is SlotError.STORAGE_UNAVAILABLE
    (slot,) = sql_store.list_slots().value
    assert slot.booked is False
    assert sql_store.book_slot("2024-06-01", "10:00", "Bob").ok


def test_sql_store_creates_sqlite_directory(tmp_path) -> None:
    from slotbook.database import create_db_engine, create_session_factory, init_db

    db_path = tmp_path / "nested" / "dir" / "slots.db"
    engine = create_db_engine(f"sqlite:///{db_path}")
    init_db(engine)
    store = SqlSlotStore(create_session_factory(engine))

    assert store.add_slot("2024-06-01", "10:00").ok
    assert os.path.exists(db_path)
    store.close()
