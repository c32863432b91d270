"""SQLAlchemy engine creation and the per-run connection scope.

One connection is opened per run and shared by the check executor and the
database report handler.  :func:`connection_scope` guarantees it is closed
and the engine disposed on every exit path.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)


def get_engine(database_url: str, statement_timeout_ms: int | None = None) -> Engine:
    """Create a synchronous SQLAlchemy engine for *database_url*.

    PostgreSQL connections get a server-side ``statement_timeout`` so a
    runaway check query fails instead of stalling the run.  Other backends
    rely on their driver's own limits.
    """
    connect_args: dict[str, object] = {}
    if database_url.startswith("postgresql") and statement_timeout_ms:
        connect_args["options"] = f"-c statement_timeout={int(statement_timeout_ms)}"

    engine = create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)
    logger.debug("Created engine for %s", engine.url.render_as_string(hide_password=True))
    return engine


@contextmanager
def connection_scope(database_url: str, statement_timeout_ms: int | None = None) -> Iterator[Connection]:
    """Yield an open connection, closing it and disposing the engine afterwards."""
    engine = get_engine(database_url, statement_timeout_ms)
    try:
        with engine.connect() as connection:
            yield connection
    finally:
        engine.dispose()
        logger.debug("Released database connection")
