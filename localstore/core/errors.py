"""Exceptions raised by storage backends and the storage facade."""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for localstore."""


class StorageInitError(StorageError):
    """Raised when a backend cannot establish its storage context."""


class SaveError(StorageError):
    """Raised when pending changes could not be flushed to durable storage.

    The backend has rolled its pending changes back by the time this is raised.
    """


class InvalidOrderingError(StorageError, ValueError):
    """Raised when an ordering is malformed or names an unknown field."""
