"""Database configuration for SQLAlchemy.

This module provides the declarative base plus factories for the engine and
session maker; the app builds both from its settings in `create_app`.
It supports both persistent and in-memory SQLite databases, as well as any
other backend configured via the `DATABASE_URL` setting.
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base class for ORM models."""
    pass


def make_engine(url: str) -> Engine:
    """Create an SQLAlchemy engine depending on the database URL."""
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if url.endswith(":///:memory:"):
            return create_engine(
                url,
                connect_args=connect_args,
                poolclass=StaticPool,
            )
        return create_engine(
            url,
            connect_args=connect_args,
            pool_pre_ping=True,
        )
    return create_engine(url, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory bound to ``engine``; one session is opened per request."""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def init_db(bind: Engine) -> None:
    """Create all tables that do not exist yet."""
    from . import models  # noqa: F401  registers the mappers on Base.metadata

    logger.info("Ensuring database schema on %s", bind.url.render_as_string(hide_password=True))
    Base.metadata.create_all(bind=bind)
