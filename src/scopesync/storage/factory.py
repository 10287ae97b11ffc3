"""Object store factory.

Instantiates the store adapter selected by config.storage.backend.
"""

from scopesync.config.models import Config
from scopesync.ports import ManagedStorePort
from scopesync.storage.memory_store import InMemoryObjectStore
from scopesync.storage.state_db import SQLiteObjectStore


def create_object_store(config: Config) -> ManagedStorePort:
    """
    Create the configured object store.

    Args:
        config: Root configuration.

    Returns:
        An uninitialized store implementing ManagedStorePort.
    """
    if config.storage.backend == "memory":
        return InMemoryObjectStore()
    return SQLiteObjectStore(config.storage.db_path)
