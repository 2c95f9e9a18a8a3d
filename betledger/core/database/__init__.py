"""Async database infrastructure."""

from .connection import engine, async_session_factory, create_engine, create_schema, get_db

__all__ = ["engine", "async_session_factory", "create_engine", "create_schema", "get_db"]
