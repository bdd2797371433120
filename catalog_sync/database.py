"""
Database Module for the Catalog and Media Sync

This module handles database initialization, connection management, and session handling.
"""

import os
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, scoped_session, Session
from sqlalchemy.pool import StaticPool

from .models import Base
from .config import Config

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages database connections and sessions."""

    def __init__(self, database_url: Optional[str] = None, echo: bool = False):
        """Initialize database manager."""
        self.database_url = database_url or self._get_database_url()
        self.echo = echo
        self.engine = None
        self.session_factory = None
        self._scoped_session = None

    def _get_database_url(self) -> str:
        """Get database URL from configuration, falling back to a local SQLite file."""
        if Config.DATABASE_URL:
            return Config.DATABASE_URL

        db_path = os.path.join(os.getcwd(), 'catalog_sync.db')
        logger.info("Using development SQLite database")
        return f"sqlite:///{db_path}"

    @property
    def is_initialized(self) -> bool:
        return self._scoped_session is not None

    def initialize(self, create_tables: bool = False) -> None:
        """Initialize database connection."""
        try:
            if self.database_url.startswith('sqlite'):
                engine_kwargs = {
                    'echo': self.echo,
                    'connect_args': {'check_same_thread': False},
                }
                if ':memory:' in self.database_url or self.database_url == 'sqlite://':
                    # A single shared connection keeps the in-memory database alive
                    engine_kwargs['poolclass'] = StaticPool
                self.engine = create_engine(self.database_url, **engine_kwargs)

                @event.listens_for(self.engine, "connect")
                def set_sqlite_pragma(dbapi_connection, connection_record):
                    cursor = dbapi_connection.cursor()
                    cursor.execute("PRAGMA foreign_keys=ON")
                    cursor.close()
                    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest correctly
                    dbapi_connection.isolation_level = None

                @event.listens_for(self.engine, "begin")
                def do_begin(conn):
                    conn.exec_driver_sql("BEGIN")
            else:
                # PostgreSQL settings
                self.engine = create_engine(
                    self.database_url,
                    echo=self.echo,
                    pool_size=Config.DATABASE_POOL_SIZE,
                    max_overflow=Config.DATABASE_MAX_OVERFLOW,
                    pool_pre_ping=True,
                    pool_recycle=Config.DATABASE_POOL_RECYCLE,
                )

            self.session_factory = sessionmaker(
                bind=self.engine,
                autoflush=False,
                expire_on_commit=False
            )
            self._scoped_session = scoped_session(self.session_factory)

            with self.session_scope() as session:
                session.execute(text("SELECT 1")).scalar()

            if create_tables:
                logger.info("Creating database tables...")
                self.create_tables()

            safe_url = self.database_url
            if '@' in safe_url:
                safe_url = safe_url.split('://')[0] + '://***@' + safe_url.split('@')[1]
            logger.info(f"Database initialized successfully: {safe_url}")

        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables created successfully")

    def get_session(self) -> Session:
        """Get a database session."""
        if not self._scoped_session:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        return self._scoped_session()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Close database connections."""
        if self._scoped_session:
            self._scoped_session.remove()

        if self.engine:
            self.engine.dispose()

        logger.info("Database connections closed")


# Global database manager instance
db_manager = DatabaseManager()


def init_database(database_url: Optional[str] = None, create_tables: bool = True) -> DatabaseManager:
    """Initialize the global database manager."""
    global db_manager
    if database_url:
        db_manager = DatabaseManager(database_url, echo=Config.DATABASE_ECHO)
    db_manager.initialize(create_tables=create_tables)
    return db_manager


def close_database() -> None:
    """Close the global database manager."""
    db_manager.close()


@contextmanager
def db_session_scope() -> Generator[Session, None, None]:
    """Transactional scope on the global database manager."""
    with db_manager.session_scope() as session:
        yield session
