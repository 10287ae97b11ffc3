"""ClusterRole synchronizer.

Drives the ClusterRoles owned by one ScopeTemplate toward the set its
spec describes: missing roles are created, drifted roles are rewritten
in place and matching roles are left alone.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from scopesync.errors import DuplicateOwnedResourceError, ScopeSyncError, SyncError
from scopesync.models import ClusterRole, ClusterRoleTemplate, ScopeInstance, ScopeTemplate
from scopesync.services.ownership import desired_cluster_role, is_owned_by_label, owned_selector
from scopesync.utils.hashing import fingerprint

if TYPE_CHECKING:
    from scopesync.ports import ClusterRoleStorePort


@dataclass
class SyncResult:
    """Outcome of one synchronization pass."""

    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    suppressed: bool = False

    @property
    def writes(self) -> int:
        """Number of store writes performed."""
        return len(self.created) + len(self.updated)


def needs_update(existing: ClusterRole, desired: ClusterRole, owner: ScopeTemplate) -> bool:
    """Compare ownership, owner references, rules and labels."""
    return not (
        is_owned_by_label(existing, owner)
        and existing.metadata.owner_references == desired.metadata.owner_references
        and existing.rules == desired.rules
        and existing.metadata.labels == desired.metadata.labels
    )


class ClusterRoleSynchronizer:
    """
    Creates and updates the ClusterRoles a ScopeTemplate describes.

    ClusterRoles are matched to descriptors by the owner-UID and
    generate-name labels, never by store name.
    """

    def __init__(self, store: "ClusterRoleStorePort") -> None:
        self.store = store

    async def sync(
        self, template: ScopeTemplate, referencers: Iterable[ScopeInstance]
    ) -> SyncResult:
        """
        Synchronize ClusterRoles for every descriptor of the template.

        Nothing is written unless at least one referencer names the
        template in the template's namespace.

        Args:
            template: Template to synchronize.
            referencers: ScopeInstances that may reference the template.

        Returns:
            SyncResult listing created, updated and unchanged roles.

        Raises:
            SyncError: Wrapping the store or duplicate error for the
                descriptor being processed.
        """
        result = SyncResult()

        if not any(instance.references(template) for instance in referencers):
            logger.debug("No ScopeInstance references ScopeTemplate {}", template.key)
            result.suppressed = True
            return result

        logger.info("ScopeInstance found that references ScopeTemplate {}", template.key)
        template_hash = fingerprint(template.spec)

        for descriptor in template.spec.cluster_roles:
            try:
                await self._sync_descriptor(template, descriptor, template_hash, result)
            except ScopeSyncError as e:
                raise SyncError(descriptor.generate_name, e) from e

        return result

    async def _sync_descriptor(
        self,
        template: ScopeTemplate,
        descriptor: ClusterRoleTemplate,
        template_hash: str,
        result: SyncResult,
    ) -> None:
        """Create, update or skip the ClusterRole for one descriptor."""
        desired = desired_cluster_role(template, descriptor, template_hash)

        existing_roles = await self.store.list_cluster_roles(
            owned_selector(template.metadata.uid, descriptor.generate_name)
        )

        if len(existing_roles) > 1:
            raise DuplicateOwnedResourceError(descriptor.generate_name, len(existing_roles))

        # generateName is immutable, so a missing role is always created fresh
        if not existing_roles:
            await self.store.create_cluster_role(desired)
            result.created.append(desired.name)
            logger.info("Created ClusterRole {} for {}", desired.name, template.key)
            return

        existing = existing_roles[0]

        if not needs_update(existing, desired, template):
            result.unchanged.append(existing.name)
            logger.debug("Existing ClusterRole {} does not need to be updated", existing.name)
            return

        existing.metadata.labels = desired.metadata.labels
        existing.metadata.owner_references = desired.metadata.owner_references
        existing.rules = desired.rules

        await self.store.update_cluster_role(existing)
        result.updated.append(existing.name)
        logger.info("Updated ClusterRole {} for {}", existing.name, template.key)
