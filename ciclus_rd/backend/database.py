"""
Ciclus RD - Database Connection
SQLAlchemy 2.0 backend client. One Backend instance is created by the
composition root and passed to every service; it is disposed on shutdown.
"""

from contextlib import contextmanager
from typing import Generator, Optional, Union

from loguru import logger
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ciclus_rd.backend.feed import ChangeFeed
from ciclus_rd.shared.config import Settings, settings as default_settings


# Create base class for models
Base = declarative_base()

CHANGED_TABLES_KEY = "changed_tables"


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def _record_changed_tables(session: Session, flush_context):
    """Remember which tables a unit of work touched"""
    changed = session.info.setdefault(CHANGED_TABLES_KEY, set())
    for obj in list(session.new) + list(session.dirty) + list(session.deleted):
        tablename = getattr(obj, "__tablename__", None)
        if tablename:
            changed.add(tablename)


class Backend:
    """Database engine, session factory and change feed"""

    def __init__(self, config: Union[Settings, str, None] = None):
        if isinstance(config, str):
            config = Settings(database_url=config)
        self.settings: Settings = config or default_settings
        url = self.settings.database_url

        engine_kwargs = {
            "echo": self.settings.debug,
            "pool_pre_ping": True,  # Verify connections before using
        }
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(url):
            engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )
        self.feed = ChangeFeed()

        event.listen(self.SessionLocal, "after_flush", _record_changed_tables)

        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", self._set_sqlite_pragma)

        logger.debug(f"Backend created for {self.engine.url.render_as_string(hide_password=True)}")

    @staticmethod
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign keys for SQLite"""
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Database session context manager
        Commits on success, rolls back on error, then notifies subscribers
        of every table the transaction changed
        """
        session = self.SessionLocal()
        changed = set()
        try:
            yield session
            session.commit()
            changed = set(session.info.get(CHANGED_TABLES_KEY, ()))
        except Exception as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            session.close()

        for table in sorted(changed):
            self.feed.publish(table)

    def init_schema(self):
        """Create all tables"""
        # Import all models to register them
        from ciclus_rd.backend.models import report, employee, user, audit  # noqa: F401

        logger.info("Creating database schema...")
        Base.metadata.create_all(bind=self.engine)
        logger.success("Database schema created successfully")

    def check_connection(self) -> bool:
        """Quick reachability check"""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Backend unreachable: {e}")
            return False

    def dispose(self):
        """Release subscriptions and pooled connections"""
        self.feed.clear()
        self.engine.dispose()
        logger.info("Backend disposed")


def create_backend(config: Optional[Settings] = None, init: bool = True) -> Backend:
    """Build a Backend and make sure its schema exists"""
    backend = Backend(config)
    if init:
        backend.init_schema()
    return backend
