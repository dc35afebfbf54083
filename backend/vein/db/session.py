"""
Engine and session factory. Pool sizing comes from Settings (DB_POOL_SIZE / DB_MAX_OVERFLOW).
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from vein.config import settings

engine = create_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Request-scoped session; closed when the response is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Session factory for work that outlives the request (post-response fan-out)."""
    return SessionLocal
