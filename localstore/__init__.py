"""Generic CRUD facade over SQLAlchemy or in-memory storage backends."""

from localstore.core.errors import InvalidOrderingError, SaveError, StorageError, StorageInitError
from localstore.db.session import Base, SQLBackend
from localstore.db.models import Entity
from localstore.repositories.local_storage import LocalDataStorage
from localstore.repositories.memory_storage import MemoryBackend
from localstore.repositories.ordering import SortDirection, SortKey

__all__ = [
    "Base",
    "Entity",
    "InvalidOrderingError",
    "LocalDataStorage",
    "MemoryBackend",
    "SQLBackend",
    "SaveError",
    "SortDirection",
    "SortKey",
    "StorageError",
    "StorageInitError",
]
