"""Port interfaces for object store operations."""

from typing import Protocol

from scopesync.models import (
    ClusterRole,
    LabelSelector,
    NamespacedName,
    ScopeInstance,
    ScopeTemplate,
)


class TemplateReaderPort(Protocol):
    """Protocol for reading ScopeTemplates."""

    async def get_scope_template(self, key: NamespacedName) -> ScopeTemplate | None:
        """Get a template by identity, or None if it does not exist."""
        ...


class ReferencerReaderPort(Protocol):
    """Protocol for reading ScopeInstances."""

    async def list_scope_instances(self, namespace: str) -> list[ScopeInstance]:
        """List all instances in a namespace."""
        ...


class ClusterRoleStorePort(Protocol):
    """Protocol for managing ClusterRoles."""

    async def list_cluster_roles(self, selector: LabelSelector) -> list[ClusterRole]:
        """List ClusterRoles matching the selector, ordered by name."""
        ...

    async def create_cluster_role(self, role: ClusterRole) -> ClusterRole:
        """Create a ClusterRole. Raises AlreadyExistsError on name clash."""
        ...

    async def update_cluster_role(self, role: ClusterRole) -> ClusterRole:
        """Replace a ClusterRole. Raises NotFoundError or ConflictError."""
        ...

    async def delete_cluster_role(self, role: ClusterRole) -> None:
        """Delete a ClusterRole. Raises NotFoundError if already gone."""
        ...


class ObjectStorePort(TemplateReaderPort, ReferencerReaderPort, ClusterRoleStorePort, Protocol):
    """Everything the reconciler reads and writes."""


class ManagedStorePort(ObjectStorePort, Protocol):
    """Full store protocol including lifecycle and admin writes."""

    async def initialize(self) -> None:
        """Prepare the store for use."""
        ...

    async def close(self) -> None:
        """Release store resources."""
        ...

    async def apply_scope_template(self, template: ScopeTemplate) -> ScopeTemplate:
        """Create or replace a template, keeping its UID across re-applies."""
        ...

    async def apply_scope_instance(self, instance: ScopeInstance) -> ScopeInstance:
        """Create or replace an instance, keeping its UID across re-applies."""
        ...

    async def delete_scope_template(self, key: NamespacedName) -> None:
        """Delete a template. Raises NotFoundError if absent."""
        ...

    async def delete_scope_instance(self, key: NamespacedName) -> None:
        """Delete an instance. Raises NotFoundError if absent."""
        ...

    async def list_scope_templates(self) -> list[ScopeTemplate]:
        """List all templates ordered by namespace and name."""
        ...

    async def get_cluster_role(self, name: str) -> ClusterRole | None:
        """Get a ClusterRole by name."""
        ...
