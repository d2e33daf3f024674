"""
Core utilities shared across localstore.

This package hosts configuration helpers (env vars), the logging setup and
the exception hierarchy raised by backends and the storage facade.
"""
