"""
session.py
-----------
Creates the database engine and session factory for SQLAlchemy.
This connects to the database using DATABASE_URL from config / .env.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from crime_write_service import config

# Base class for ORM models to inherit from (like Crime)
Base = declarative_base()


def make_engine(url=None, echo=False):
    """
    Build an engine for the given URL (defaults to config.DATABASE_URL).

    SQLite connections are shared with the background import worker, so the
    same-thread check is disabled. In-memory SQLite needs a single static
    connection, otherwise every new connection sees an empty database.
    """
    url = url or config.DATABASE_URL

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, future=True, **kwargs)

    return create_engine(url, echo=echo, pool_pre_ping=True, future=True)


def make_session_factory(engine):
    """Session factory bound to engine. Objects stay readable after commit."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


def init_db(engine):
    """Create all tables if not present."""
    # models must be imported so they register with Base.metadata
    from crime_write_service.db import models  # noqa: F401

    Base.metadata.create_all(engine)
