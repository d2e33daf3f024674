"""Generic CRUD facade over an explicitly owned storage backend."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional, Type, TypeVar

from localstore.core.config import Settings, get_settings
from localstore.core.errors import SaveError, StorageError, StorageInitError
from localstore.db.session import SQLBackend
from .backend import StorageBackend
from .memory_storage import MemoryBackend
from .ordering import Ordering, normalize_ordering

EntityT = TypeVar("EntityT")

MEMORY_SCHEME = "memory://"

_logger = logging.getLogger(__name__)


class LocalDataStorage:
    """
    Fetch/create/update/delete helpers for any entity type the backend can
    persist.

    Every mutating call ends with exactly one ``save()``; a failed save raises
    SaveError and the backend's pending changes are rolled back. Calls are
    serialized on a re-entrant lock, so setup/update callbacks run while it is
    held and may call back into the facade.
    """

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend
        self._lock = threading.RLock()
        try:
            backend.load()
        except StorageInitError:
            _logger.exception("Storage backend %s failed to load", type(backend).__name__)
            raise
        except Exception as exc:
            _logger.exception("Storage backend %s failed to load", type(backend).__name__)
            raise StorageInitError(f"Failed to load {type(backend).__name__}: {exc}") from exc

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "LocalDataStorage":
        """
        Build a facade for ``settings.database_url``.

        ``memory://`` selects the in-memory backend; anything after the scheme
        is the JSON file it flushes to. Any other URL goes to SQLAlchemy.
        """
        settings = settings or get_settings()
        url = settings.database_url
        if url.startswith(MEMORY_SCHEME):
            return cls(MemoryBackend(url[len(MEMORY_SCHEME):] or None))
        return cls(SQLBackend(url, echo=settings.echo_sql))

    # -------------------------- reads --------------------------
    def fetch_all(
        self,
        entity_type: Type[EntityT],
        predicate: Optional[Any] = None,
        order_by: Optional[Ordering] = None,
    ) -> List[EntityT]:
        keys = normalize_ordering(order_by)
        with self._lock:
            found = self.backend.query(entity_type, predicate, keys)
        _logger.debug("fetch_all %s count=%s ordered=%s", entity_type.__name__, len(found), bool(keys))
        return found

    def fetch_one(self, entity_type: Type[EntityT], predicate: Optional[Any] = None) -> Optional[EntityT]:
        with self._lock:
            found = self.backend.query(entity_type, predicate, limit=1)
        _logger.debug("fetch_one %s found=%s", entity_type.__name__, bool(found))
        return found[0] if found else None

    def count(self, entity_type: Type[EntityT], predicate: Optional[Any] = None) -> int:
        with self._lock:
            return self.backend.count(entity_type, predicate)

    # -------------------------- writes --------------------------
    def create(
        self,
        entity_type: Type[EntityT],
        quantity: int,
        setup: Callable[[int, EntityT], Any],
    ) -> List[EntityT]:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValueError(f"quantity must be a non-negative int, got {quantity!r}")
        with self._lock:
            created: List[EntityT] = []
            try:
                for index in range(quantity):
                    entity = self.backend.construct(entity_type)
                    setup(index, entity)
                    created.append(entity)
            except Exception:
                self.backend.rollback()
                raise
            self.save()
        _logger.debug("create %s quantity=%s", entity_type.__name__, quantity)
        return created

    def first_or_create(
        self,
        entity_type: Type[EntityT],
        predicate: Optional[Any] = None,
        setup: Optional[Callable[[int, EntityT], Any]] = None,
    ) -> EntityT:
        with self._lock:
            existing = self.fetch_one(entity_type, predicate)
            if existing is not None:
                return existing
            return self.create(entity_type, 1, setup or (lambda _index, _entity: None))[0]

    def update_objects(
        self,
        entity_type: Type[EntityT],
        predicate: Optional[Any] = None,
        update: Optional[Callable[[int, EntityT], Any]] = None,
    ) -> List[EntityT]:
        if update is None:
            raise TypeError("update_objects() requires an update callback")
        with self._lock:
            targets = self.backend.query(entity_type, predicate)
            if not targets:
                _logger.debug("update_objects %s matched nothing", entity_type.__name__)
                return []
            try:
                for index, entity in enumerate(targets):
                    update(index, entity)
            except Exception:
                self.backend.rollback()
                raise
            self.save()
        _logger.debug("update_objects %s count=%s", entity_type.__name__, len(targets))
        return targets

    def delete(self, entity_type: Type[EntityT], predicate: Optional[Any] = None) -> int:
        with self._lock:
            removed = self.backend.remove(entity_type, predicate)
            self.save()
        _logger.debug("delete %s count=%s filtered=%s", entity_type.__name__, removed, predicate is not None)
        return removed

    def truncate(self, entity_type: Type[EntityT]) -> int:
        return self.delete(entity_type)

    def save(self) -> None:
        with self._lock:
            try:
                self.backend.flush()
            except SaveError:
                _logger.exception("Save failed for %s", type(self.backend).__name__)
                raise
            except StorageError:
                raise
            except Exception as exc:
                _logger.exception("Save failed for %s", type(self.backend).__name__)
                self.backend.rollback()
                raise SaveError(f"Failed to save {type(self.backend).__name__}: {exc}") from exc
        _logger.debug("saved %s", type(self.backend).__name__)
