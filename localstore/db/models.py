"""Mixins for SQLAlchemy entities stored through SQLBackend."""
from __future__ import annotations

from sqlalchemy import Column, Integer


class Entity:
    """
    Gives a mapped class an integer identity assigned by the database on
    insert. Use together with ``Base``::

        class Widget(Entity, Base):
            __tablename__ = "widgets"
            name = Column(String(64), nullable=False, default="")
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
