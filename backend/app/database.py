# backend/app/database.py
"""
Database connection and session management.

This module configures SQLAlchemy with:
- In-memory SQLite (tests) sharing one connection through StaticPool
- File SQLite (local development)
- Connection pooling for PostgreSQL
- Table creation and health check helpers

Pool Configuration (configurable via environment variables):
- DB_POOL_SIZE: Persistent connections (default: 5)
- DB_POOL_MAX_OVERFLOW: Burst capacity (default: 10)
- DB_POOL_RECYCLE: Connection lifetime (default: 3600s)
- DB_POOL_PRE_PING: Health checks (default: True)
"""

import logging
from collections.abc import Generator
from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool, QueuePool

from .config import settings

logger = logging.getLogger(__name__)


def _create_engine():
    """
    Create SQLAlchemy engine with environment-appropriate configuration.

    Configuration varies by database type:
    - SQLite in-memory: StaticPool so every session sees the same database
    - SQLite file: default pool, the parent directory is created if missing
    - PostgreSQL: QueuePool with configurable connection pooling
    """
    if settings.is_sqlite_memory:
        logger.info("Configuring in-memory SQLite database")
        return create_engine(
            settings.database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    if settings.is_sqlite:
        database = make_url(settings.database_url).database
        if database:
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Configuring SQLite database at {database}")
        # check_same_thread=False: sessions are used from FastAPI's threadpool
        return create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    logger.info(
        f"Configuring PostgreSQL database pool: "
        f"size={settings.db_pool_size}, "
        f"max_overflow={settings.db_pool_max_overflow}, "
        f"recycle={settings.db_pool_recycle}s, "
        f"pre_ping={settings.db_pool_pre_ping}"
    )

    return create_engine(
        settings.database_url,
        poolclass=QueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_timeout=30,
        echo=settings.debug,
    )


# Create engine and session factory
engine = _create_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create all tables that do not exist yet."""
    from app.models import Base

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Yields:
        Session: A SQLAlchemy database session that auto-closes after use.

    Usage:
        @router.get("/portfolios")
        def list_portfolios(db: Session = Depends(get_db)):
            return PortfolioService(db).list_portfolios()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns:
        dict: Health status with connection info
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        status = {
            "status": "healthy",
            "database": "sqlite" if settings.is_sqlite else "postgresql",
        }
        if isinstance(engine.pool, QueuePool):
            status["pool"] = {
                "pool_size": engine.pool.size(),
                "checked_in": engine.pool.checkedin(),
                "checked_out": engine.pool.checkedout(),
                "overflow": engine.pool.overflow(),
            }
        return status
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e),
        }
