"""Database helpers for the SQL byte store."""

from .session import Base, get_engine, get_session
from .models import KeyValueEntry

__all__ = ["Base", "KeyValueEntry", "get_engine", "get_session"]
