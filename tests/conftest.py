from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, NamedTuple

import pytest

# Garante que o pacote localstore seja importável durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from localstore.core import config as core_config
from localstore.db import session as db_session
from localstore.repositories.local_storage import LocalDataStorage
from localstore.repositories.memory_storage import MemoryBackend

import sample_entities


class StorageKit(NamedTuple):
    """A facade plus the entity types and filter builder matching its backend."""

    storage: LocalDataStorage
    widget: type
    gadget: type
    eq: Callable[[str, Any], Any]


@pytest.fixture()
def sql_storage(tmp_path, monkeypatch):
    """SQLite temporário por teste; teardown completo para não deixar o arquivo bloqueado."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()

    engine = db_session.get_engine()
    db_session.Base.metadata.drop_all(bind=engine)
    backend = db_session.SQLBackend(engine=engine)
    storage = LocalDataStorage(backend)

    yield storage

    backend.close()
    try:
        db_session.Base.metadata.drop_all(bind=engine)
    finally:
        engine.dispose()
        db_session.get_engine.cache_clear()
        core_config.get_settings.cache_clear()


@pytest.fixture()
def memory_storage():
    return LocalDataStorage(MemoryBackend())


@pytest.fixture(params=["sql", "memory"])
def kit(request) -> StorageKit:
    if request.param == "sql":
        storage = request.getfixturevalue("sql_storage")
        return StorageKit(
            storage,
            sample_entities.Widget,
            sample_entities.Gadget,
            lambda field, value: getattr(sample_entities.Widget, field) == value,
        )
    storage = request.getfixturevalue("memory_storage")
    return StorageKit(
        storage,
        sample_entities.MemoryWidget,
        sample_entities.MemoryGadget,
        lambda field, value: {field: value},
    )
