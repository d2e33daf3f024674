"""The contract a persistence backend fulfils for LocalDataStorage.

Filters are opaque at this level: each backend documents what it accepts
(SQLAlchemy clauses for SQLBackend, callables or field mappings for
MemoryBackend). ``None`` always means "unconstrained".
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, Type, TypeVar

from .ordering import SortKey

EntityT = TypeVar("EntityT")


class StorageBackend(Protocol):
    """Outbound contract: what the storage facade requires from a backend."""

    def load(self) -> None:
        """Establish the storage context; raise StorageInitError on failure."""
        ...

    def query(
        self,
        entity_type: Type[EntityT],
        predicate: Optional[Any] = None,
        order_by: tuple[SortKey, ...] = (),
        limit: Optional[int] = None,
    ) -> List[EntityT]:
        """Return up to ``limit`` matches, in identity order unless ``order_by`` is given."""
        ...

    def count(self, entity_type: Type[EntityT], predicate: Optional[Any] = None) -> int:
        """Return the number of matches without loading them."""
        ...

    def construct(self, entity_type: Type[EntityT]) -> EntityT:
        """Create a new, not yet saved entity registered with the context."""
        ...

    def remove(self, entity_type: Type[EntityT], predicate: Optional[Any] = None) -> int:
        """Mark matches for deletion and return how many there were."""
        ...

    def flush(self) -> None:
        """Write pending changes durably; raise SaveError after rolling back."""
        ...

    def rollback(self) -> None:
        """Discard pending changes."""
        ...

    def has_changes(self) -> bool:
        ...
