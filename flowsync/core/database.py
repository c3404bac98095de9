"""
Database connection management for flowsync.

The engine and session factory are built exactly once at process start
and handed to request handlers; nothing here is created lazily on first use.
"""

import threading
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from flowsync.core.config import Settings
from flowsync.core.exceptions import ConfigurationError
from flowsync.core.logging import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Owns the SQLAlchemy engine (connection pool) and session factory.

    initialize() is guarded by a lock so concurrent callers never build
    two pools, and it fails loudly when the database is unreachable.
    """

    def __init__(self, settings: Settings, database_url: Optional[str] = None):
        self._settings = settings
        self._database_url = database_url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker[Session]] = None
        self._lock = threading.Lock()

    def initialize(self) -> None:
        """Build the pool and verify connectivity. Raises ConfigurationError."""
        with self._lock:
            if self._engine is not None:
                return

            settings = self._settings
            db_url = self._database_url or settings.database_connection_string

            logger.info(
                "Initializing database pool",
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
            )

            try:
                engine = create_engine(
                    db_url,
                    poolclass=QueuePool,
                    pool_size=settings.db_pool_size,
                    max_overflow=settings.db_max_overflow,
                    pool_timeout=settings.db_pool_timeout,
                    pool_recycle=settings.db_pool_recycle,
                    pool_pre_ping=True,
                    echo=False,
                    connect_args={
                        "connect_timeout": 5,
                        "options": "-c statement_timeout=30000",
                    },
                )
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
            except SQLAlchemyError as e:
                logger.error("Database pool initialization failed", error=str(e))
                raise ConfigurationError(
                    "Database is unavailable", details={"error": str(e)}
                ) from e

            self._engine = engine
            self._session_factory = sessionmaker(
                bind=engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise ConfigurationError("Database manager used before initialize()")
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            raise ConfigurationError("Database manager used before initialize()")
        return self._session_factory

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Get a database session context manager.

        Yields a session and handles commit/rollback/close.
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def check_health(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, ConfigurationError) as e:
            logger.warning("Database health check failed", error=str(e))
            return False

    def dispose(self) -> None:
        """Dispose engine and connections."""
        with self._lock:
            if self._engine:
                self._engine.dispose()
                self._engine = None
                self._session_factory = None
                logger.info("Database connections disposed")
