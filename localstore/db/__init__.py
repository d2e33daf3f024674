"""Database helpers (engine/backend export)."""

from .models import Entity
from .session import Base, SQLBackend, create_storage_engine, get_engine

__all__ = ["Base", "Entity", "SQLBackend", "create_storage_engine", "get_engine"]
