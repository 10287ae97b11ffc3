"""
Database migrations for the SQLite object store.

Migrations are applied in version order.
"""

__all__ = []
