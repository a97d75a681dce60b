"""Database engine and session management"""

from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from fee_engine.config import settings


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Create the engine on first use so importing the app never opens a connection"""
    if settings.database_url.startswith("sqlite"):
        return create_engine(settings.database_url, connect_args={"check_same_thread": False})

    # Pooled Postgres: recycle hourly to avoid stale connections
    return create_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    return sessionmaker(autoflush=False, bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """Dependency injection for database sessions"""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
