"""SQLite object store for ScopeSync."""

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Any
from uuid import uuid4

import aiosqlite

from scopesync.errors import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    StoreError,
    StoreUnavailableError,
)
from scopesync.models import (
    ClusterRole,
    LabelSelector,
    NamespacedName,
    ScopeInstance,
    ScopeTemplate,
)
from scopesync.storage.migrations import v001_initial


class SQLiteObjectStore:
    """
    SQLite-backed store implementing ManagedStorePort.

    Objects are stored as JSON documents keyed by their identity.
    Label selectors are evaluated in Python over rows ordered by name.
    """

    def __init__(self, db_path: Path | str) -> None:
        """
        Initialize SQLiteObjectStore.

        Args:
            db_path: Path to SQLite database file.
        """
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """
        Open the database connection and apply migrations.

        Creates the database file if it doesn't exist.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(self.db_path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA journal_mode = WAL")

        await self._apply_migrations()

    async def _apply_migrations(self) -> None:
        """Apply database migrations incrementally based on current schema version."""
        conn = self._get_conn()

        cursor = await conn.execute(
            """
            SELECT name FROM sqlite_master
            WHERE type='table' AND name='schema_version'
            """
        )
        table_exists = await cursor.fetchone()

        current_version = 0
        if table_exists:
            cursor = await conn.execute(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            )
            row = await cursor.fetchone()
            current_version = row[0] if row else 0

        if current_version < 1:
            await v001_initial.apply_migration(conn)

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _get_conn(self) -> aiosqlite.Connection:
        """Get database connection, raising if not initialized."""
        if not self._conn:
            raise StoreError("Database not initialized")
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Context manager for database transactions.

        Commits on success, rolls back on exception.
        """
        conn = self._get_conn()

        try:
            yield conn
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise

    async def fetchone(self, sql: str, params: list[Any] | None = None) -> aiosqlite.Row | None:
        """Execute query and fetch one row."""
        with _translate_errors():
            cursor = await self._get_conn().execute(sql, params or [])
            return await cursor.fetchone()

    async def fetchall(self, sql: str, params: list[Any] | None = None) -> list[aiosqlite.Row]:
        """Execute query and fetch all rows."""
        with _translate_errors():
            cursor = await self._get_conn().execute(sql, params or [])
            result = await cursor.fetchall()
        return list(result) if result else []

    # =========================================================================
    # ScopeTemplate Operations
    # =========================================================================

    async def get_scope_template(self, key: NamespacedName) -> ScopeTemplate | None:
        """Get template by identity."""
        row = await self.fetchone(
            "SELECT object_json FROM scope_templates WHERE namespace = ? AND name = ?",
            [key.namespace, key.name],
        )
        if row is None:
            return None
        return ScopeTemplate.model_validate_json(row["object_json"])

    async def list_scope_templates(self) -> list[ScopeTemplate]:
        """List templates ordered by namespace and name."""
        rows = await self.fetchall(
            "SELECT object_json FROM scope_templates ORDER BY namespace, name"
        )
        return [ScopeTemplate.model_validate_json(row["object_json"]) for row in rows]

    async def apply_scope_template(self, template: ScopeTemplate) -> ScopeTemplate:
        """Create or replace a template, keeping its UID."""
        stored = template.model_copy(deep=True)
        key = stored.key
        await self._assign_identity("scope_templates", key, stored)

        with _translate_errors():
            async with self.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO scope_templates
                        (namespace, name, uid, resource_version, object_json)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(namespace, name) DO UPDATE SET
                        resource_version = excluded.resource_version,
                        object_json = excluded.object_json,
                        updated_at = datetime('now')
                    """,
                    [
                        key.namespace,
                        key.name,
                        stored.metadata.uid,
                        stored.metadata.resource_version,
                        _dump(stored),
                    ],
                )
        return stored

    async def delete_scope_template(self, key: NamespacedName) -> None:
        """Delete a template."""
        with _translate_errors():
            async with self.transaction() as conn:
                cursor = await conn.execute(
                    "DELETE FROM scope_templates WHERE namespace = ? AND name = ?",
                    [key.namespace, key.name],
                )
        if cursor.rowcount == 0:
            raise NotFoundError("ScopeTemplate", str(key))

    # =========================================================================
    # ScopeInstance Operations
    # =========================================================================

    async def list_scope_instances(self, namespace: str) -> list[ScopeInstance]:
        """List instances in a namespace ordered by name."""
        rows = await self.fetchall(
            "SELECT object_json FROM scope_instances WHERE namespace = ? ORDER BY name",
            [namespace],
        )
        return [ScopeInstance.model_validate_json(row["object_json"]) for row in rows]

    async def apply_scope_instance(self, instance: ScopeInstance) -> ScopeInstance:
        """Create or replace an instance, keeping its UID."""
        stored = instance.model_copy(deep=True)
        key = NamespacedName(
            namespace=stored.metadata.namespace or "", name=stored.metadata.name
        )
        await self._assign_identity("scope_instances", key, stored)

        with _translate_errors():
            async with self.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO scope_instances
                        (namespace, name, uid, resource_version, scope_template_name, object_json)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(namespace, name) DO UPDATE SET
                        resource_version = excluded.resource_version,
                        scope_template_name = excluded.scope_template_name,
                        object_json = excluded.object_json,
                        updated_at = datetime('now')
                    """,
                    [
                        key.namespace,
                        key.name,
                        stored.metadata.uid,
                        stored.metadata.resource_version,
                        stored.spec.scope_template_name,
                        _dump(stored),
                    ],
                )
        return stored

    async def delete_scope_instance(self, key: NamespacedName) -> None:
        """Delete an instance."""
        with _translate_errors():
            async with self.transaction() as conn:
                cursor = await conn.execute(
                    "DELETE FROM scope_instances WHERE namespace = ? AND name = ?",
                    [key.namespace, key.name],
                )
        if cursor.rowcount == 0:
            raise NotFoundError("ScopeInstance", str(key))

    async def _assign_identity(
        self, table: str, key: NamespacedName, obj: ScopeTemplate | ScopeInstance
    ) -> None:
        """Keep the UID of a re-applied object and bump its version."""
        row = await self.fetchone(
            f"SELECT uid, resource_version FROM {table} WHERE namespace = ? AND name = ?",
            [key.namespace, key.name],
        )
        if row is None:
            obj.metadata.uid = obj.metadata.uid or str(uuid4())
            obj.metadata.resource_version = 1
        else:
            obj.metadata.uid = row["uid"]
            obj.metadata.resource_version = row["resource_version"] + 1

    # =========================================================================
    # ClusterRole Operations
    # =========================================================================

    async def get_cluster_role(self, name: str) -> ClusterRole | None:
        """Get ClusterRole by name."""
        row = await self.fetchone("SELECT object_json FROM cluster_roles WHERE name = ?", [name])
        if row is None:
            return None
        return ClusterRole.model_validate_json(row["object_json"])

    async def list_cluster_roles(self, selector: LabelSelector) -> list[ClusterRole]:
        """List ClusterRoles matching the selector, ordered by name."""
        rows = await self.fetchall("SELECT object_json FROM cluster_roles ORDER BY name")
        roles = [ClusterRole.model_validate_json(row["object_json"]) for row in rows]
        return [role for role in roles if selector.matches(role.metadata.labels)]

    async def create_cluster_role(self, role: ClusterRole) -> ClusterRole:
        """Create a ClusterRole."""
        stored = role.model_copy(deep=True)
        stored.metadata.uid = str(uuid4())
        stored.metadata.resource_version = 1

        with _translate_errors(on_duplicate=AlreadyExistsError("ClusterRole", stored.name)):
            async with self.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO cluster_roles (name, uid, resource_version, object_json)
                    VALUES (?, ?, ?, ?)
                    """,
                    [stored.name, stored.metadata.uid, 1, _dump(stored)],
                )
        return stored

    async def update_cluster_role(self, role: ClusterRole) -> ClusterRole:
        """Replace a ClusterRole, checking its resource version."""
        expected = role.metadata.resource_version
        stored = role.model_copy(deep=True)
        stored.metadata.resource_version = expected + 1

        current = await self.fetchone(
            "SELECT uid, resource_version FROM cluster_roles WHERE name = ?", [role.name]
        )
        if current is None:
            raise NotFoundError("ClusterRole", role.name)
        stored.metadata.uid = current["uid"]

        with _translate_errors():
            async with self.transaction() as conn:
                cursor = await conn.execute(
                    """
                    UPDATE cluster_roles
                    SET resource_version = ?, object_json = ?, updated_at = datetime('now')
                    WHERE name = ? AND resource_version = ?
                    """,
                    [expected + 1, _dump(stored), role.name, expected],
                )

        if cursor.rowcount == 0:
            raise ConflictError(
                f"ClusterRole {role.name!r} was modified: expected version {expected}"
            )
        return stored

    async def delete_cluster_role(self, role: ClusterRole) -> None:
        """Delete a ClusterRole."""
        with _translate_errors():
            async with self.transaction() as conn:
                cursor = await conn.execute(
                    "DELETE FROM cluster_roles WHERE name = ?", [role.name]
                )
        if cursor.rowcount == 0:
            raise NotFoundError("ClusterRole", role.name)


@contextmanager
def _translate_errors(on_duplicate: StoreError | None = None) -> Iterator[None]:
    """Map SQLite exceptions onto the store error taxonomy."""
    try:
        yield
    except StoreError:
        raise
    except aiosqlite.IntegrityError as e:
        if on_duplicate is not None:
            raise on_duplicate from e
        raise StoreError(str(e)) from e
    except aiosqlite.OperationalError as e:
        raise StoreUnavailableError(str(e)) from e
    except aiosqlite.Error as e:
        raise StoreError(str(e)) from e


def _dump(obj: ClusterRole | ScopeTemplate | ScopeInstance) -> str:
    return obj.model_dump_json(by_alias=True)
