"""Initial database schema migration."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import aiosqlite

SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

-- ============================================================================
-- SCOPE TEMPLATES (namespaced)
-- ============================================================================
CREATE TABLE IF NOT EXISTS scope_templates (
    namespace TEXT NOT NULL,
    name TEXT NOT NULL,
    uid TEXT NOT NULL UNIQUE,
    resource_version INTEGER NOT NULL DEFAULT 1,
    object_json TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),

    PRIMARY KEY (namespace, name)
);

-- ============================================================================
-- SCOPE INSTANCES (namespaced)
-- ============================================================================
CREATE TABLE IF NOT EXISTS scope_instances (
    namespace TEXT NOT NULL,
    name TEXT NOT NULL,
    uid TEXT NOT NULL UNIQUE,
    resource_version INTEGER NOT NULL DEFAULT 1,
    scope_template_name TEXT NOT NULL DEFAULT '',
    object_json TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),

    PRIMARY KEY (namespace, name)
);

CREATE INDEX IF NOT EXISTS idx_instances_template
    ON scope_instances(namespace, scope_template_name);

-- ============================================================================
-- CLUSTER ROLES (cluster-scoped)
-- ============================================================================
CREATE TABLE IF NOT EXISTS cluster_roles (
    name TEXT PRIMARY KEY,
    uid TEXT NOT NULL UNIQUE,
    resource_version INTEGER NOT NULL DEFAULT 1,
    object_json TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

INSERT OR IGNORE INTO schema_version (version) VALUES (1);
"""


async def apply_migration(db: "aiosqlite.Connection") -> None:
    """Apply the initial schema migration."""
    await db.executescript(SCHEMA)
    await db.commit()
