"""Database connection and session management"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from listening_stats.config import settings
from listening_stats.models.db import Base

logger = logging.getLogger(__name__)

class Database:
    """Database connection and session manager"""

    def __init__(self):
        """Initialize database manager state"""
        self._engine = None
        self._SessionLocal = None

    def _get_connection_string(self, url: Optional[str] = None) -> str:
        """
        Resolve the database URL.

        Raises:
            ValueError: If no URL is configured
        """
        connection_string = url or settings.DATABASE_URL
        if not connection_string:
            logger.error("Failed to initialize database connection: DATABASE_URL is not set")
            raise ValueError("DATABASE_URL setting is required")
        return connection_string

    def init(self, url: Optional[str] = None) -> None:
        """
        Initialize database connection and create tables.
        """
        try:
            self._engine = create_engine(self._get_connection_string(url))
            Base.metadata.create_all(self._engine)
            self._SessionLocal = sessionmaker(bind=self._engine)
            logger.info("Database initialized successfully")

        except SQLAlchemyError as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Session that commits on success and rolls back on any error"""
        if not self._SessionLocal:
            raise RuntimeError("Database not initialized. Call init() first.")

        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Release pooled connections; init() must be called again before use"""
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._SessionLocal = None

db = Database()
