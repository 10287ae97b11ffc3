"""Object store adapters for ScopeSync."""

from scopesync.storage.factory import create_object_store
from scopesync.storage.memory_store import InMemoryObjectStore
from scopesync.storage.state_db import SQLiteObjectStore

__all__ = ["InMemoryObjectStore", "SQLiteObjectStore", "create_object_store"]
