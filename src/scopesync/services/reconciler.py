"""ScopeTemplate reconciliation driver.

Runs one reconciliation pass for a template: synchronize its
ClusterRoles, then delete the ones left behind by spec changes.
Every phase is idempotent, so a failed pass is fixed by invoking
``reconcile`` again; nothing here retries.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from scopesync.errors import ReconcileError, ReconcilePhase, ScopeSyncError, SyncError
from scopesync.models import NamespacedName
from scopesync.services.reaper import ReapResult, StaleResourceReaper
from scopesync.services.synchronizer import ClusterRoleSynchronizer, SyncResult
from scopesync.utils.hashing import fingerprint

if TYPE_CHECKING:
    from scopesync.ports import ObjectStorePort


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass."""

    key: NamespacedName
    found: bool = True
    template_hash: str | None = None
    sync: SyncResult = field(default_factory=SyncResult)
    reap: ReapResult = field(default_factory=ReapResult)

    @property
    def writes(self) -> int:
        """Number of create, update and delete calls that succeeded."""
        return self.sync.writes + len(self.reap.deleted)


class ScopeTemplateReconciler:
    """Reconciles a ScopeTemplate against the object store."""

    def __init__(self, store: "ObjectStorePort") -> None:
        self.store = store
        self.synchronizer = ClusterRoleSynchronizer(store)
        self.reaper = StaleResourceReaper(store)

    async def reconcile(self, key: NamespacedName) -> ReconcileResult:
        """
        Run one reconciliation pass.

        A template that no longer exists is not an error.

        Args:
            key: Namespaced identity of the template.

        Returns:
            ReconcileResult describing the writes made.

        Raises:
            ReconcileError: Naming the phase that failed.
        """
        logger.info("Reconciling ScopeTemplate {}", key)
        result = ReconcileResult(key=key)

        template = await self.store.get_scope_template(key)
        if template is None:
            logger.info("ScopeTemplate {} not found, nothing to do", key)
            result.found = False
            return result

        template_hash = fingerprint(template.spec)
        result.template_hash = template_hash

        try:
            instances = await self.store.list_scope_instances(key.namespace)
            result.sync = await self.synchronizer.sync(template, instances)
        except SyncError as e:
            raise ReconcileError(ReconcilePhase.CREATE, e.cause, e.generate_name) from e.cause
        except ScopeSyncError as e:
            raise ReconcileError(ReconcilePhase.CREATE, e) from e

        try:
            result.reap = await self.reaper.reap(template.metadata.uid, template_hash)
        except ScopeSyncError as e:
            logger.warning("Error deleting stale ClusterRoles for {}: {}", key, e)
            raise ReconcileError(ReconcilePhase.CLEANUP, e) from e

        logger.info(
            "Reconciled ScopeTemplate {}: created={} updated={} unchanged={} deleted={}",
            key,
            len(result.sync.created),
            len(result.sync.updated),
            len(result.sync.unchanged),
            len(result.reap.deleted),
        )
        return result
