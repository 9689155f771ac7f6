"""
Database utilities and connection management.

WHAT: SQLAlchemy engine and session setup for conversation snapshots
WHY: Durable storage for conversations and notifications
HOW: SQLAlchemy sync engine v2, WAL mode for SQLite, session context manager
"""

from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Base for models
Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """
    Create an engine, preparing SQLite files and pragmas.

    Args:
        database_url: SQLAlchemy URL

    Returns:
        Engine bound to the URL
    """
    is_sqlite = database_url.startswith("sqlite")

    if database_url.startswith("sqlite:///") and ":memory:" not in database_url:
        data_dir = Path(database_url.replace("sqlite:///", "")).parent
        data_dir.mkdir(parents=True, exist_ok=True)

    db_engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        echo=settings.DEBUG,
        future=True
    )

    if is_sqlite:
        @event.listens_for(db_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            """Enable WAL mode for better concurrency."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return db_engine


engine = create_db_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False
)


@contextmanager
def get_db(session_factory=None):
    """
    Context manager for database session.

    Usage:
        with get_db() as db:
            # use db session
            pass

    Args:
        session_factory: Optional sessionmaker (defaults to SessionLocal)

    Yields:
        Session: SQLAlchemy session
    """
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def ping_database(db_engine: Engine | None = None) -> dict:
    """
    Check database connectivity.

    Returns:
        Dict with status and info
    """
    db_engine = db_engine or engine
    try:
        with db_engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()

        return {
            "available": True,
            "url": db_engine.url.render_as_string(hide_password=True),
            "error": None
        }
    except Exception as e:
        logger.error(f"Database ping failed: {e}")
        return {
            "available": False,
            "url": db_engine.url.render_as_string(hide_password=True),
            "error": str(e)
        }


def init_db(db_engine: Engine | None = None):
    """Create all tables."""
    # Import models so they register with Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=db_engine or engine)
    logger.info("Database initialized")


def close_db():
    """Close database connections."""
    engine.dispose()
    logger.info("Database connections closed")
