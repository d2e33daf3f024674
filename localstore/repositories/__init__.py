"""
Persistence adapters and the storage facade.

Callers depend on LocalDataStorage; backends (SQLAlchemy, in-memory/JSON)
encapsulate how entities are stored and retrieved.
"""
