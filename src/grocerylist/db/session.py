"""Database engine, sessions and transactions for grocerylist."""
from contextlib import contextmanager
from typing import Generator, Optional
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.engine import Engine
import sqlite3

from grocerylist.config.settings import get_settings

settings = get_settings()


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Turn on foreign keys and take over transaction control."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        # pysqlite would otherwise defer BEGIN until the first write
        dbapi_connection.isolation_level = None


@event.listens_for(Engine, "begin")
def begin_sqlite_transaction(conn):
    """Open the SQLite transaction at its first statement, reads included."""
    if conn.dialect.name == "sqlite":
        conn.exec_driver_sql("BEGIN")


def create_store_engine(url: Optional[str] = None, echo: Optional[bool] = None, **kwargs) -> Engine:
    """
    Create an engine for the grocery store database.

    Args:
        url: Database URL (default: DB_URL setting)
        echo: Log SQL statements (default: DB_ECHO setting)
        **kwargs: Passed through to create_engine

    Returns:
        Engine with the SQLite listeners above applied
    """
    url = url or settings.DB_URL
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(
        url,
        echo=settings.DB_ECHO if echo is None else echo,
        **kwargs
    )


def make_session_factory(bind: Engine) -> sessionmaker:
    """
    Session factory for services bound to ``bind``.

    Objects returned by a service stay loaded after its commit, so
    reading them never opens a transaction that nothing would end.
    """
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=bind)


engine = create_store_engine()

SessionLocal = make_session_factory(engine)


def get_session() -> Session:
    """Get a new database session."""
    return SessionLocal()


@contextmanager
def session_scope(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """Session for one request; committed on success, always closed."""
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


class TransactionManager:
    """Runs service operations as single transactions on a shared session.

    Rows a service hands back must be loaded inside ``transaction()``;
    use sessions from ``make_session_factory`` so the commit keeps them.
    """

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def transaction(self, *, auto_commit: bool = True) -> Generator[Session, None, None]:
        """
        Wrap one ledger operation.

        Every write made inside the block, including each step of a
        reorder, is discarded if the block raises.

        Args:
            auto_commit: Commit when the block finishes

        Yields:
            Session: The shared session

        Raises:
            Exception: Whatever the block raised, after rollback
        """
        try:
            yield self.session
            if auto_commit:
                self.session.commit()
        except Exception:
            self.session.rollback()
            raise
