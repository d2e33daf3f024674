"""Engine/session helpers and the SQLAlchemy storage backend."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, List, Optional, Type, TypeVar

from sqlalchemy import create_engine, func, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoInspectionAvailable, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from localstore.core.config import get_settings
from localstore.core.errors import InvalidOrderingError, SaveError, StorageInitError
from localstore.repositories.ordering import SortDirection, SortKey

Base = declarative_base()

EntityT = TypeVar("EntityT")

_logger = logging.getLogger(__name__)


def create_storage_engine(url: str, *, echo: bool = False) -> Engine:
    url = (url or "").strip()
    if not url:
        raise StorageInitError("DATABASE_URL must be configured to use the SQL backend.")
    return create_engine(url, future=True, pool_pre_ping=True, echo=echo)


@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    return create_storage_engine(settings.database_url, echo=settings.echo_sql)


class SQLBackend:
    """
    Storage context backed by one SQLAlchemy session.

    The session lives as long as the backend. Filters are SQLAlchemy boolean
    clauses (``Widget.name == "w1"``) or a sequence of them, combined with AND.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        engine: Optional[Engine] = None,
        metadata=None,
        echo: bool = False,
    ) -> None:
        if url is None and engine is None:
            raise ValueError("SQLBackend needs a database url or an engine")
        self.url = url
        self.metadata = metadata if metadata is not None else Base.metadata
        self._echo = echo
        self._engine = engine
        self._owns_engine = engine is None
        self._session: Optional[Session] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StorageInitError("SQLBackend has not been loaded")
        return self._engine

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StorageInitError("SQLBackend has not been loaded")
        return self._session

    def load(self) -> None:
        try:
            if self._engine is None:
                self._engine = create_storage_engine(self.url, echo=self._echo)
            self.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as exc:
            raise StorageInitError(f"Failed to load SQL storage: {exc}") from exc
        factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )
        self._session = factory()
        _logger.debug("SQL storage loaded url=%s", self._engine.url)

    def _where(self, stmt, predicate: Optional[Any]):
        if predicate is None:
            return stmt
        if isinstance(predicate, (list, tuple)):
            return stmt.where(*predicate)
        return stmt.where(predicate)

    def _order_by(self, stmt, entity_type: type, order_by: tuple[SortKey, ...]):
        if not order_by:
            try:
                return stmt.order_by(*inspect(entity_type).primary_key)
            except NoInspectionAvailable:
                return stmt
        clauses = []
        for key in order_by:
            column = getattr(entity_type, key.field, None)
            if column is None or not hasattr(column, "asc"):
                raise InvalidOrderingError(f"{entity_type.__name__} has no column {key.field!r}")
            clauses.append(column.desc() if key.direction is SortDirection.DESC else column.asc())
        return stmt.order_by(*clauses)

    def query(
        self,
        entity_type: Type[EntityT],
        predicate: Optional[Any] = None,
        order_by: tuple[SortKey, ...] = (),
        limit: Optional[int] = None,
    ) -> List[EntityT]:
        stmt = self._order_by(self._where(select(entity_type), predicate), entity_type, order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars().all())

    def count(self, entity_type: Type[EntityT], predicate: Optional[Any] = None) -> int:
        stmt = self._where(select(func.count()).select_from(entity_type), predicate)
        return int(self.session.execute(stmt).scalar_one())

    def construct(self, entity_type: Type[EntityT]) -> EntityT:
        entity = entity_type()
        self.session.add(entity)
        return entity

    def remove(self, entity_type: Type[EntityT], predicate: Optional[Any] = None) -> int:
        # load-then-delete so ORM cascades and relationship bookkeeping apply
        matches = self.query(entity_type, predicate)
        for entity in matches:
            self.session.delete(entity)
        return len(matches)

    def has_changes(self) -> bool:
        session = self.session
        return bool(session.new or session.dirty or session.deleted)

    def flush(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.rollback()
            raise SaveError(f"Failed to save SQL storage: {exc}") from exc

    def rollback(self) -> None:
        self.session.rollback()

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
        if self._owns_engine and self._engine is not None:
            self._engine.dispose()
            self._engine = None
