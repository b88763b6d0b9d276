# backend/slotbook/services/slots/__init__.py
"""
Slot store module.

SlotStore: list/add/delete/book slots with at-most-one booking per slot.
Backends: database (SQLAlchemy) or JSON file; per-key locks are local or Redis.
"""

import logging

from ...config import Settings
from ...database import create_db_engine, create_session_factory, init_db
from ...redis_client import get_redis_client
from .base import SlotStore
from .domain import Booking, Customer, Outcome, Slot, SlotError
from .file_store import JsonFileSlotStore
from .locks import LocalKeyLocks, LockTimeout, RedisKeyLocks
from .sql_store import SqlSlotStore

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> SlotStore:
    """Create the configured SlotStore backend."""
    if settings.store_backend == "file":
        redis = get_redis_client(settings)
        if redis is not None:
            locks = RedisKeyLocks(redis, timeout=settings.lock_timeout_seconds)
        else:
            locks = LocalKeyLocks(timeout=settings.lock_timeout_seconds)
        path = settings.resolved_slots_file
        logger.info("Using JSON file slot store at %s (%s)", path, type(locks).__name__)
        return JsonFileSlotStore(path, locks)

    engine = create_db_engine(settings.resolved_database_url, ssl=settings.database_ssl)
    init_db(engine)
    return SqlSlotStore(create_session_factory(engine))


__all__ = [
    "Booking",
    "Customer",
    "JsonFileSlotStore",
    "LocalKeyLocks",
    "LockTimeout",
    "Outcome",
    "RedisKeyLocks",
    "Slot",
    "SlotError",
    "SlotStore",
    "SqlSlotStore",
    "build_store",
]
