"""Deletes ClusterRoles abandoned by a ScopeTemplate spec change."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from scopesync.errors import NotFoundError
from scopesync.services.ownership import stale_selector

if TYPE_CHECKING:
    from scopesync.ports import ClusterRoleStorePort


@dataclass
class ReapResult:
    """Outcome of one reap pass."""

    deleted: list[str] = field(default_factory=list)
    already_gone: list[str] = field(default_factory=list)


class StaleResourceReaper:
    """
    Removes ClusterRoles whose fingerprint label no longer matches.

    A fingerprint mismatch covers both removed descriptors and edited
    descriptors, so no diff of old and new specs is needed.
    """

    def __init__(self, store: "ClusterRoleStorePort") -> None:
        self.store = store

    async def reap(self, template_uid: str, current_hash: str) -> ReapResult:
        """
        Delete every ClusterRole owned by the template under another hash.

        Deletions already made are kept if a later one fails.

        Args:
            template_uid: UID of the owning template.
            current_hash: Current fingerprint of the template spec.

        Returns:
            ReapResult with deleted and already-absent role names.
        """
        result = ReapResult()

        stale_roles = await self.store.list_cluster_roles(
            stale_selector(template_uid, current_hash)
        )

        for role in stale_roles:
            try:
                await self.store.delete_cluster_role(role)
            except NotFoundError:
                logger.debug("Stale ClusterRole {} already deleted", role.name)
                result.already_gone.append(role.name)
                continue
            logger.info("Deleted stale ClusterRole {}", role.name)
            result.deleted.append(role.name)

        return result
