"""
In-memory persistence backend, optionally flushed to a JSON file.

Entities are plain objects constructible without arguments (dataclasses with
defaults work well); their public instance attributes are the fields. The
backend assigns ``id`` on construction. Filters are either a callable
``predicate(entity) -> bool`` or a mapping of field names to expected values.
"""

from __future__ import annotations

import copy
import dataclasses
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from localstore.core.errors import InvalidOrderingError, SaveError, StorageInitError
from .ordering import SortDirection, SortKey

EntityT = TypeVar("EntityT")

_logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def table_name(entity_type: type) -> str:
    return getattr(entity_type, "__tablename__", None) or entity_type.__name__


def _fields(entity: Any) -> dict:
    return {key: value for key, value in vars(entity).items() if not key.startswith("_")}


def _matcher(predicate: Optional[Any]) -> Callable[[Any], bool]:
    if predicate is None:
        return lambda _entity: True
    if isinstance(predicate, Mapping):
        expected = dict(predicate)
        missing = object()
        return lambda entity: all(getattr(entity, k, missing) == v for k, v in expected.items())
    if callable(predicate):
        return lambda entity: bool(predicate(entity))
    raise TypeError(f"Unsupported filter for MemoryBackend: {predicate!r}")


def _has_field(entity_type: type, field: str) -> bool:
    if field == "id" or hasattr(entity_type, field):
        return True
    if dataclasses.is_dataclass(entity_type):
        return field in {f.name for f in dataclasses.fields(entity_type)}
    return hasattr(entity_type(), field)


def _sort(entities: List[Any], entity_type: type, order_by: tuple[SortKey, ...]) -> List[Any]:
    for key in order_by:
        if not _has_field(entity_type, key.field):
            raise InvalidOrderingError(f"{entity_type.__name__} has no field {key.field!r}")

    result = list(entities)
    # stable sort: apply the least significant key first
    for key in reversed(order_by):
        def _key(entity, field=key.field):
            try:
                value = getattr(entity, field)
            except AttributeError:
                raise InvalidOrderingError(f"{entity_type.__name__} has no field {field!r}") from None
            return (value is not None, value)

        try:
            result.sort(key=_key, reverse=key.direction is SortDirection.DESC)
        except TypeError as exc:
            raise InvalidOrderingError(
                f"{entity_type.__name__}.{key.field} holds values that cannot be compared: {exc}"
            ) from exc
    return result


class MemoryBackend:
    """Ordered per-type tables of live objects plus the last saved snapshot."""

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        self.path = Path(path) if path else None
        self._committed: Dict[str, Dict[int, dict]] = {}
        self._next_id: Dict[str, int] = {}
        self._types: Dict[str, type] = {}
        self._tables: Dict[str, Dict[int, Any]] = {}
        self._removed: Dict[str, Dict[int, Any]] = {}

    # -------------------------- lifecycle --------------------------
    def load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            tables = raw["tables"]
            for name, table in tables.items():
                rows = {int(row["id"]): dict(row) for row in table.get("rows", [])}
                if rows:
                    self._committed[name] = rows
                self._next_id[name] = max(int(table.get("next_id", 1)), max(rows, default=0) + 1)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise StorageInitError(f"Failed to load JSON storage {self.path}: {exc}") from exc
        _logger.debug("JSON storage loaded path=%s tables=%s", self.path, sorted(self._committed))

    def _table(self, entity_type: type) -> Dict[int, Any]:
        name = table_name(entity_type)
        known = self._types.get(name)
        if known is not None and known is not entity_type:
            raise TypeError(f"Table {name!r} is already bound to {known.__name__}")
        if name not in self._tables:
            self._types[name] = entity_type
            self._tables[name] = {
                identity: self._materialize(entity_type, fields)
                for identity, fields in self._committed.get(name, {}).items()
            }
            self._removed[name] = {}
        return self._tables[name]

    def _materialize(self, entity_type: type, fields: dict) -> Any:
        entity = entity_type()
        for key, value in copy.deepcopy(fields).items():
            setattr(entity, key, value)
        return entity

    # -------------------------- queries --------------------------
    def query(
        self,
        entity_type: Type[EntityT],
        predicate: Optional[Any] = None,
        order_by: tuple[SortKey, ...] = (),
        limit: Optional[int] = None,
    ) -> List[EntityT]:
        matches = _matcher(predicate)
        found = [entity for entity in self._table(entity_type).values() if matches(entity)]
        if order_by:
            found = _sort(found, entity_type, order_by)
        return found if limit is None else found[:limit]

    def count(self, entity_type: Type[EntityT], predicate: Optional[Any] = None) -> int:
        matches = _matcher(predicate)
        return sum(1 for entity in self._table(entity_type).values() if matches(entity))

    def construct(self, entity_type: Type[EntityT]) -> EntityT:
        table = self._table(entity_type)
        name = table_name(entity_type)
        identity = self._next_id.get(name, 1)
        self._next_id[name] = identity + 1
        entity = entity_type()
        entity.id = identity
        table[identity] = entity
        return entity

    def remove(self, entity_type: Type[EntityT], predicate: Optional[Any] = None) -> int:
        table = self._table(entity_type)
        removed = self._removed[table_name(entity_type)]
        matches = _matcher(predicate)
        doomed = [identity for identity, entity in table.items() if matches(entity)]
        for identity in doomed:
            removed[identity] = table.pop(identity)
        return len(doomed)

    # -------------------------- persistence --------------------------
    def _snapshot(self) -> Dict[str, Dict[int, dict]]:
        snapshot = {name: rows for name, rows in self._committed.items() if name not in self._tables}
        for name, table in self._tables.items():
            if table:
                snapshot[name] = {identity: copy.deepcopy(_fields(entity)) for identity, entity in table.items()}
        return snapshot

    def has_changes(self) -> bool:
        return self._snapshot() != self._committed

    def _write(self, snapshot: Dict[str, Dict[int, dict]]) -> None:
        payload = {
            "version": FORMAT_VERSION,
            "tables": {
                name: {
                    "next_id": self._next_id.get(name, 1),
                    "rows": [snapshot[name][identity] for identity in sorted(snapshot.get(name, {}))],
                }
                for name in sorted(set(snapshot) | set(self._next_id))
            },
        }
        text = json.dumps(payload, ensure_ascii=False, indent=2)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, self.path)

    def flush(self) -> None:
        snapshot = self._snapshot()
        if snapshot == self._committed:
            return
        try:
            if self.path is not None:
                self._write(snapshot)
        except (OSError, TypeError, ValueError) as exc:
            self.rollback()
            raise SaveError(f"Failed to save JSON storage {self.path}: {exc}") from exc
        self._committed = snapshot
        for removed in self._removed.values():
            removed.clear()

    def rollback(self) -> None:
        for name, table in self._tables.items():
            committed = self._committed.get(name, {})
            survivors = {**table, **self._removed[name]}
            restored = {}
            for identity in sorted(survivors):
                if identity not in committed:
                    continue
                entity = survivors[identity]
                for key in list(_fields(entity)):
                    if key not in committed[identity]:
                        delattr(entity, key)
                for key, value in copy.deepcopy(committed[identity]).items():
                    setattr(entity, key, value)
                restored[identity] = entity
            self._tables[name] = restored
            self._removed[name] = {}
