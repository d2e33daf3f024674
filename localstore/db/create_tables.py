"""
Utility script to create the database schema for the configured DATABASE_URL.

Entities register themselves on ``Base`` when their module is imported, so
pass the application modules that declare them:

  python -m localstore.db.create_tables --models myapp.entities
"""
from __future__ import annotations

import argparse
import importlib
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError

from localstore.core.errors import StorageInitError
from localstore.core.logging import configure_logging
from .session import Base, get_engine


def create_all(modules: Sequence[str] = ()) -> list[str]:
    for name in modules:
        importlib.import_module(name)
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    return sorted(Base.metadata.tables)


def main(argv: Sequence[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Create localstore tables")
    ap.add_argument(
        "--models",
        action="append",
        default=[],
        help="Module declaring entities (repeatable)",
    )
    args = ap.parse_args(argv)
    configure_logging()
    try:
        tables = create_all(args.models)
    except (SQLAlchemyError, StorageInitError, ImportError) as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
    print("Database tables created successfully.")
    for table in tables:
        print(f"  {table}")


if __name__ == "__main__":
    main()
