# Infrastructure Adapters Package
from .memory_store import InMemoryProgressStore
from .sqlite_store import SqliteProgressStore

__all__ = ["InMemoryProgressStore", "SqliteProgressStore"]
