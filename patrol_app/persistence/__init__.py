"""
Persistence module.

Repository interface for patrol documents and its SQLite implementation.
"""
from .patrol_store import PatrolStore, SQLitePatrolStore

__all__ = ["PatrolStore", "SQLitePatrolStore"]
