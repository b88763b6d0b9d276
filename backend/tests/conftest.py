from __future__ import annotations

import pytest

from slotbook.database import create_db_engine, create_session_factory, init_db
from slotbook.services.slots import JsonFileSlotStore, LocalKeyLocks, SqlSlotStore


@pytest.fixture
def sql_store(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'slots.db'}")
    init_db(engine)
    store = SqlSlotStore(create_session_factory(engine))
    yield store
    store.close()


@pytest.fixture
def file_store(tmp_path):
    return JsonFileSlotStore(tmp_path / "slots.json", LocalKeyLocks(timeout=5))


@pytest.fixture(params=["database", "file"])
def store(request):
    # Every behavioural test runs against both backends.
    name = "sql_store" if request.param == "database" else "file_store"
    return request.getfixturevalue(name)
