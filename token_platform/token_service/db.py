"""
Database connection and session management for the token service
"""
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
import logging

from .config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
    return create_engine(settings.DATABASE_URL, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db(engine: Engine) -> None:
    """
    Create all tables. Safe to call on every startup.
    """
    from .models import User  # noqa: F401  registers the table on Base

    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized: %s", engine.url.render_as_string(hide_password=True))


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency function to get a database session for one request.

    Yields:
        Session: SQLAlchemy database session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
