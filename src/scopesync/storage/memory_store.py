"""In-memory object store.

Holds every object in plain dicts. Used by tests and by the CLI's
``memory`` backend. Every ClusterRole write is recorded in ``writes``.
"""

from uuid import uuid4

from scopesync.errors import AlreadyExistsError, ConflictError, NotFoundError
from scopesync.models import (
    ClusterRole,
    LabelSelector,
    NamespacedName,
    ScopeInstance,
    ScopeTemplate,
)


class InMemoryObjectStore:
    """Dict-backed store implementing ManagedStorePort."""

    def __init__(self) -> None:
        self._templates: dict[NamespacedName, ScopeTemplate] = {}
        self._instances: dict[NamespacedName, ScopeInstance] = {}
        self._cluster_roles: dict[str, ClusterRole] = {}
        self.writes: list[tuple[str, str]] = []

    async def initialize(self) -> None:
        """Nothing to prepare."""

    async def close(self) -> None:
        """Nothing to release."""

    # =========================================================================
    # ScopeTemplate / ScopeInstance Operations
    # =========================================================================

    async def get_scope_template(self, key: NamespacedName) -> ScopeTemplate | None:
        """Get template by identity."""
        template = self._templates.get(key)
        return template.model_copy(deep=True) if template else None

    async def list_scope_templates(self) -> list[ScopeTemplate]:
        """List templates ordered by namespace and name."""
        keys = sorted(self._templates, key=lambda k: (k.namespace, k.name))
        return [self._templates[k].model_copy(deep=True) for k in keys]

    async def apply_scope_template(self, template: ScopeTemplate) -> ScopeTemplate:
        """Create or replace a template."""
        stored = template.model_copy(deep=True)
        _assign_identity(stored, self._templates.get(stored.key))
        self._templates[stored.key] = stored
        return stored.model_copy(deep=True)

    async def delete_scope_template(self, key: NamespacedName) -> None:
        """Delete a template."""
        if self._templates.pop(key, None) is None:
            raise NotFoundError("ScopeTemplate", str(key))

    async def list_scope_instances(self, namespace: str) -> list[ScopeInstance]:
        """List instances in a namespace ordered by name."""
        keys = sorted(
            (k for k in self._instances if k.namespace == namespace), key=lambda k: k.name
        )
        return [self._instances[k].model_copy(deep=True) for k in keys]

    async def apply_scope_instance(self, instance: ScopeInstance) -> ScopeInstance:
        """Create or replace an instance."""
        stored = instance.model_copy(deep=True)
        key = NamespacedName(
            namespace=stored.metadata.namespace or "", name=stored.metadata.name
        )
        _assign_identity(stored, self._instances.get(key))
        self._instances[key] = stored
        return stored.model_copy(deep=True)

    async def delete_scope_instance(self, key: NamespacedName) -> None:
        """Delete an instance."""
        if self._instances.pop(key, None) is None:
            raise NotFoundError("ScopeInstance", str(key))

    # =========================================================================
    # ClusterRole Operations
    # =========================================================================

    async def get_cluster_role(self, name: str) -> ClusterRole | None:
        """Get ClusterRole by name."""
        role = self._cluster_roles.get(name)
        return role.model_copy(deep=True) if role else None

    async def list_cluster_roles(self, selector: LabelSelector) -> list[ClusterRole]:
        """List ClusterRoles matching the selector, ordered by name."""
        return [
            self._cluster_roles[name].model_copy(deep=True)
            for name in sorted(self._cluster_roles)
            if selector.matches(self._cluster_roles[name].metadata.labels)
        ]

    async def create_cluster_role(self, role: ClusterRole) -> ClusterRole:
        """Create a ClusterRole."""
        if role.name in self._cluster_roles:
            raise AlreadyExistsError("ClusterRole", role.name)

        stored = role.model_copy(deep=True)
        stored.metadata.uid = str(uuid4())
        stored.metadata.resource_version = 1
        self._cluster_roles[stored.name] = stored
        self.writes.append(("create", stored.name))
        return stored.model_copy(deep=True)

    async def update_cluster_role(self, role: ClusterRole) -> ClusterRole:
        """Replace a ClusterRole, checking its resource version."""
        current = self._cluster_roles.get(role.name)
        if current is None:
            raise NotFoundError("ClusterRole", role.name)
        if role.metadata.resource_version != current.metadata.resource_version:
            raise ConflictError(
                f"ClusterRole {role.name!r} was modified: "
                f"expected version {current.metadata.resource_version}, "
                f"got {role.metadata.resource_version}"
            )

        stored = role.model_copy(deep=True)
        stored.metadata.uid = current.metadata.uid
        stored.metadata.resource_version = current.metadata.resource_version + 1
        self._cluster_roles[stored.name] = stored
        self.writes.append(("update", stored.name))
        return stored.model_copy(deep=True)

    async def delete_cluster_role(self, role: ClusterRole) -> None:
        """Delete a ClusterRole."""
        if self._cluster_roles.pop(role.name, None) is None:
            raise NotFoundError("ClusterRole", role.name)
        self.writes.append(("delete", role.name))


def _assign_identity(
    obj: ScopeTemplate | ScopeInstance, previous: ScopeTemplate | ScopeInstance | None
) -> None:
    """Keep the UID of a re-applied object and bump its version."""
    if previous is None:
        obj.metadata.uid = obj.metadata.uid or str(uuid4())
        obj.metadata.resource_version = 1
    else:
        obj.metadata.uid = previous.metadata.uid
        obj.metadata.resource_version = previous.metadata.resource_version + 1
