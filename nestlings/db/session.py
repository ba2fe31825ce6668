"""
Database connection and session management.
"""
from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import DEFAULT_DATABASE_CONFIG, DatabaseConfig

Base = declarative_base()


def build_engine(config: DatabaseConfig = DEFAULT_DATABASE_CONFIG) -> Engine:
    """Create an engine for ``config.url``.

    In-memory SQLite gets a single shared connection so every session sees
    the same database.
    """
    if config.url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if config.url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(config.url, echo=config.echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    # pool_pre_ping ensures connections are alive before using them
    return create_engine(config.url, echo=config.echo, pool_pre_ping=True)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency that provides a database session.
    The session is closed once the request is done.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
