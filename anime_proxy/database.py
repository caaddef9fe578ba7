"""
Database configuration and session management.

Configures the SQLAlchemy engine with a bounded connection pool and provides
the FastAPI dependency that injects one session per request.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from anime_proxy.settings import settings

DATABASE_URL = settings.get_database_url()

Base = declarative_base()

engine_options = {"pool_pre_ping": True}
# SQLite pools take no sizing arguments
if not DATABASE_URL.startswith("sqlite"):
    engine_options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )

engine = create_engine(DATABASE_URL, **engine_options)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Yield database session with automatic cleanup."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
