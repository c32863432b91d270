"""Database connection management."""

from check_engine.state.database import connection_scope, get_engine

__all__ = ["connection_scope", "get_engine"]
