"""Database connection manager for the Entity Store."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from coursehub.store.exceptions import StoreUnavailableError
from coursehub.store.models import Base

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Engine

DEFAULT_TIMEOUT_SECONDS = 5.0


class Database:
    """Database connection manager.

    Manages SQLite database connections with WAL mode and foreign keys enabled.
    Every connection waits at most ``timeout`` seconds for a lock before the
    call fails with StoreUnavailableError.
    """

    def __init__(
        self, db_path: str = "coursehub.db", timeout: float = DEFAULT_TIMEOUT_SECONDS
    ) -> None:
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for in-memory DB.
            timeout: Busy timeout in seconds for every connection.
        """
        self.db_path = db_path
        self.timeout = timeout
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            # For in-memory databases, use StaticPool to share connection across threads
            # and allow cross-thread access (needed for testing with TestClient)
            if self.db_path == ":memory:":
                self._engine = create_engine(
                    "sqlite:///:memory:",
                    echo=False,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False, "timeout": self.timeout},
                )
            else:
                self._engine = create_engine(
                    f"sqlite:///{self.db_path}",
                    echo=False,
                    connect_args={"check_same_thread": False, "timeout": self.timeout},
                )

            busy_timeout_ms = int(self.timeout * 1000)

            @event.listens_for(self._engine, "connect")
            def set_sqlite_pragma(dbapi_connection: object, _connection_record: object) -> None:
                cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms}")
                cursor.close()

        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                expire_on_commit=False,
            )
        return self._session_factory

    def create_tables(self) -> None:
        """Create all tables if they don't exist."""
        try:
            Base.metadata.create_all(self.engine)
        except OperationalError as e:
            raise StoreUnavailableError(f"Could not create tables: {e}") from e

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session.

        Returns:
            A new SQLAlchemy session.
        """
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Yield a session that is rolled back on error and always closed.

        OperationalError (lock timeout, unreachable file) is raised as
        StoreUnavailableError.
        """
        session = self.get_session()
        try:
            yield session
        except OperationalError as e:
            session.rollback()
            raise StoreUnavailableError(f"Store unavailable: {e.orig}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """Run a trivial query.

        Returns:
            True if the database answered.

        Raises:
            StoreUnavailableError: If the database could not be reached.
        """
        try:
            with self.engine.connect() as conn:
                return conn.execute(text("SELECT 1")).scalar() == 1
        except OperationalError as e:
            raise StoreUnavailableError(f"Store unavailable: {e.orig}") from e

    def is_wal_mode(self) -> bool:
        """Check if WAL mode is enabled.

        Returns:
            True if WAL mode is enabled.
        """
        with self.engine.connect() as conn:
            result = conn.execute(text("PRAGMA journal_mode"))
            mode = result.scalar()
            return mode == "wal"

    def close(self) -> None:
        """Close the database connection."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
