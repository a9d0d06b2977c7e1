"""
Module: fieldstock_kernel.db.engine
Responsibility: engine construction, session factories and transaction
    scopes for the SQL inventory store.
Architecture position: Kernel > DB. Table management imports
    fieldstock_kernel.models lazily so Base.metadata is complete.

Two ways to use it:

    # explicit wiring (orchestrator, tests)
    engine = build_engine(url)
    factory = make_session_factory(engine)
    with transactional(factory) as session: ...

    # process-wide engine (scripts, host applications)
    init_engine_from_url(url)
    with session_scope() as session: ...

Invariants enforced:
    - Every SQLite connection runs with ``PRAGMA foreign_keys=ON`` so lot
      rows cascade with their item as they do on PostgreSQL.
    - In-memory SQLite shares one connection (StaticPool); otherwise each
      session would see an empty database.
    - PostgreSQL runs READ COMMITTED; item rows are serialised by
      ``SELECT ... FOR UPDATE`` in the store, not by isolation level.
    - Sessions never expire on commit. Stores convert rows to frozen
      domain objects, and reads after commit must not hit the database.

Failure modes:
    - RuntimeError from get_engine/get_session/get_session_factory before
      init_engine_from_url().
"""

import atexit
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from fieldstock_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_IN_MEMORY_SQLITE = ("sqlite://", "sqlite:///:memory:")

_engine: Engine | None = None
_factory: sessionmaker[Session] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """Create an engine for ``database_url`` without touching module state."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if database_url in _IN_MEMORY_SQLITE else None,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        database_url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        isolation_level="READ COMMITTED",
    )


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def transactional(factory: sessionmaker[Session]) -> Iterator[Session]:
    """
    One session, one transaction.

    Commits when the block exits normally. Rolls back and re-raises when it
    raises. The session is closed either way.
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.debug("transaction_rolled_back")
        raise
    finally:
        session.close()


# ----------------------------------------------------------------------
# Process-wide engine
# ----------------------------------------------------------------------


def init_engine_from_url(database_url: str, echo: bool = False, **pool_options) -> Engine:
    """Install the process-wide engine, replacing any previous one."""
    global _engine, _factory

    reset_engine()
    _engine = build_engine(database_url, echo=echo, **pool_options)
    _factory = make_session_factory(_engine)

    configure_logging()
    logger.info("engine_initialized", extra={
        "dialect": _engine.dialect.name,
        "echo": echo,
    })
    return _engine


def _require_initialized() -> None:
    if _engine is None or _factory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")


def get_engine() -> Engine:
    _require_initialized()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    _require_initialized()
    return _factory


def get_session() -> Session:
    """A new, unmanaged session. Prefer ``session_scope``."""
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    with transactional(get_session_factory()) as session:
        yield session


def reset_engine() -> None:
    """Dispose the process-wide engine, if any. Used by tests."""
    global _engine, _factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _factory = None


atexit.register(reset_engine)


# ----------------------------------------------------------------------
# Schema
# ----------------------------------------------------------------------


def create_tables(engine: Engine | None = None) -> None:
    """Create the inventory and transfer tables (default: process engine)."""
    from fieldstock_kernel.db.base import Base
    import fieldstock_kernel.models  # noqa: F401  registers tables

    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    from fieldstock_kernel.db.base import Base
    import fieldstock_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine or get_engine())
