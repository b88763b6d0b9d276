import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from .models.slots import Base

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, ssl: bool = False) -> Engine:
    """
    Build the engine for the database-backed slot store.

    SQLite: check_same_thread=False so FastAPI worker threads can share the
    pool, plus a busy timeout so concurrent writers wait instead of failing.
    PostgreSQL: pool_pre_ping, optional sslmode=require.
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

    connect_args = {"sslmode": "require"} if ssl else {}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(engine: Engine) -> None:
    """Create tables and the (date, time) unique constraint if missing."""
    Base.metadata.create_all(engine)
    logger.info("DB initialized (%s)", engine.url.render_as_string(hide_password=True))
