"""Database session management for the Renstra planner."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..config.settings import settings


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Make SQLite enforce parent foreign keys the way PostgreSQL does."""
    if engine.url.get_backend_name() != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str) -> Engine:
    """Create an engine with the pool options used across the app."""
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=settings.db_echo,
        )
    else:
        engine = create_engine(
            url,
            pool_pre_ping=True,
            pool_recycle=300,
            echo=settings.db_echo,
        )
    enable_sqlite_foreign_keys(engine)
    return engine


# Create database engine
engine = build_engine(settings.database_url)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Yields:
        Session: SQLAlchemy database session

    Example:
        with get_db_session() as db:
            rows = db.query(MasterUrusan).all()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        raise e
    finally:
        db.close()


def init_db() -> None:
    """Create every planning table that does not exist yet."""
    from .models import Base

    Base.metadata.create_all(bind=engine)


def drop_db() -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data!
    Only use for testing or development.
    """
    from .models import Base

    Base.metadata.drop_all(bind=engine)


def reset_db() -> None:
    """
    Drop and recreate all database tables.

    WARNING: This will delete all data!
    Only use for testing or development.
    """
    drop_db()
    init_db()
