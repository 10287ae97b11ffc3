"""Port interfaces for ScopeSync.

Ports define the contracts that store adapters must implement.
Reconciliation logic depends only on these abstractions, not
concrete implementations.
"""

from scopesync.ports.store import (
    ClusterRoleStorePort,
    ManagedStorePort,
    ObjectStorePort,
    ReferencerReaderPort,
    TemplateReaderPort,
)

__all__ = [
    "ClusterRoleStorePort",
    "ManagedStorePort",
    "ObjectStorePort",
    "ReferencerReaderPort",
    "TemplateReaderPort",
]
