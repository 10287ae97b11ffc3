"""ScopeSync: desired-state reconciliation of ScopeTemplate ClusterRoles."""

__version__ = "0.1.0"
