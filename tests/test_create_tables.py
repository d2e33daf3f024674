from __future__ import annotations

import logging

import pytest
from sqlalchemy import inspect

from localstore.core import config as core_config
from localstore.db import create_tables
from localstore.db import session as db_session


@pytest.fixture()
def configured_db(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'schema.db'}")
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    yield
    logger = logging.getLogger("localstore")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    db_session.get_engine().dispose()
    db_session.get_engine.cache_clear()
    core_config.get_settings.cache_clear()


def test_main_creates_tables_for_given_modules(configured_db, capsys):
    create_tables.main(["--models", "sample_entities"])

    out = capsys.readouterr().out
    assert "Database tables created successfully." in out
    assert "widgets" in out
    assert {"widgets", "gadgets"} <= set(inspect(db_session.get_engine()).get_table_names())


def test_main_reports_unknown_module(configured_db):
    with pytest.raises(SystemExit) as excinfo:
        create_tables.main(["--models", "no_such_module_here"])
    assert "Failed to create tables" in str(excinfo.value)
