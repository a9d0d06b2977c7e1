"""Database layer - engine, base class, and append-only enforcement."""

from fieldstock_kernel.db.base import Base
from fieldstock_kernel.db.engine import (
    build_engine,
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    make_session_factory,
    reset_engine,
    session_scope,
    transactional,
)

__all__ = [
    "Base",
    "build_engine",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "make_session_factory",
    "reset_engine",
    "session_scope",
    "transactional",
]
