"""
Database Session Management

Server databases go through ATAMS init_database so the connection pool
settings and the /health/db checks apply. SQLite (local runs and tests) gets
its own engine because it takes no pool arguments.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from atams.db import session as atams_session
from atams.db.session import normalize_database_url
from geoattend.core.config import settings

database_url = normalize_database_url(settings.DATABASE_URL)

if database_url.startswith("sqlite"):
    # Connections are shared between the request thread and the event loop
    engine = create_engine(
        database_url,
        echo=settings.DEBUG,
        connect_args={"check_same_thread": False},
    )
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
else:
    # Initialize database with connection pool settings
    atams_session.init_database(
        settings.DATABASE_URL,
        settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_pre_ping=settings.DB_POOL_PRE_PING
    )
    engine = atams_session.engine
    SessionLocal = atams_session.SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency

    Usage:
        @router.get("/")
        async def endpoint(db: Session = Depends(get_db)):
            # Use db here
            pass
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
