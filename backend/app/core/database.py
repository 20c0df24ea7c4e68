from sqlalchemy import create_engine
from sqlalchemy import text
from sqlmodel import Session, SQLModel
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import logging
from fastapi import HTTPException

from .config import settings

logger = logging.getLogger(__name__)

_engine = None


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((Exception,)),
    reraise=True
)
def create_database_engine(url: str = None):
    """Create database engine with retry logic."""
    url = url or settings.DATABASE_URL
    logger.info(f"Attempting to connect to database: {url.split('@')[1] if '@' in url else 'hidden'}")

    if url.startswith("sqlite"):
        engine = create_engine(url, echo=settings.DEBUG, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(
            url,
            echo=settings.DEBUG,
            pool_pre_ping=True,
            pool_recycle=300,  # Recycle connections every 5 minutes
            pool_size=10,
            max_overflow=20,
        )

    # Test the connection
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
        logger.info("Database connection successful!")

    return engine


def get_engine():
    """Return the shared engine, connecting on first use. None if unreachable."""
    global _engine
    if _engine is None:
        try:
            _engine = create_database_engine()
        except Exception as e:
            logger.error(f"Failed to create database engine after retries: {e}")
            return None
    return _engine


def init_db(engine) -> None:
    """Create all tables registered on SQLModel metadata."""
    from .. import models  # noqa: F401  registers tables

    SQLModel.metadata.create_all(engine)


def get_db():
    """Get database session."""
    engine = get_engine()
    if engine is None:
        raise HTTPException(
            status_code=503,
            detail="Database is temporarily unavailable. Please try again later."
        )

    with Session(engine) as session:
        yield session
