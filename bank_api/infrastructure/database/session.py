"""Database session management with connection pooling"""

import logging
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from bank_api.config import settings
from bank_api.domain.exceptions import StoreError
from bank_api.infrastructure.database.models import Base


def engine_options(database_url: str) -> Dict[str, Any]:
    """Engine keyword arguments for the configured backend"""
    if database_url.startswith("sqlite"):
        # Request handlers run in a threadpool
        return {"connect_args": {"check_same_thread": False}}
    # Up to 20 connections per process, recycled hourly
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit(db: Session) -> None:
    """Commit the request's unit of work; the caller rolls back on failure"""
    try:
        db.commit()
    except SQLAlchemyError as e:
        raise StoreError("Failed to commit changes") from e


def init_db() -> None:
    """Create tables that do not exist yet"""
    Base.metadata.create_all(bind=engine)
    logging.info("Database schema ensured", extra={"database": engine.url.render_as_string(hide_password=True)})
