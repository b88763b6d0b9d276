from __future__ import annotations

from sqlalchemy import text

from slotbook.database import create_db_engine


def test_sqlite_engine_waits_on_busy_writers_and_leaves_fk_pragma_alone(tmp_path) -> None:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'slots.db'}")
    try:
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA busy_timeout")).scalar() == 30000
            # The schema has no foreign keys; bookings outlive their slot.
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 0
    finally:
        engine.dispose()
