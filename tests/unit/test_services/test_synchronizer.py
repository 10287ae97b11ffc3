"""Tests for ClusterRoleSynchronizer."""

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from scopesync.errors import (
    DuplicateOwnedResourceError,
    ListFilterConstructionError,
    StoreUnavailableError,
    SyncError,
)
from scopesync.models import PolicyRule, ScopeInstance, ScopeTemplate
from scopesync.services.ownership import (
    SCOPE_TEMPLATE_HASH_KEY,
    SCOPE_TEMPLATE_UID_KEY,
    desired_cluster_role,
)
from scopesync.services.synchronizer import ClusterRoleSynchronizer
from scopesync.storage.memory_store import InMemoryObjectStore
from scopesync.utils.hashing import fingerprint


async def _seed(
    store: InMemoryObjectStore, template: ScopeTemplate, name: str | None = None
) -> None:
    """Store the ClusterRoles the template currently describes."""
    template_hash = fingerprint(template.spec)
    for descriptor in template.spec.cluster_roles:
        role = desired_cluster_role(template, descriptor, template_hash)
        if name is not None:
            role.metadata.name = name
        await store.create_cluster_role(role)
    store.writes.clear()


class TestReferencerGate:
    """Test that nothing is written without a referencing instance."""

    @pytest.mark.asyncio
    async def test_no_referencers_means_no_store_calls(self, template: ScopeTemplate) -> None:
        """With no referencers the store is never touched."""
        store = AsyncMock()
        result = await ClusterRoleSynchronizer(store).sync(template, [])

        assert result.suppressed is True
        assert result.writes == 0
        store.list_cluster_roles.assert_not_called()
        store.create_cluster_role.assert_not_called()
        store.update_cluster_role.assert_not_called()

    @pytest.mark.asyncio
    async def test_referencer_in_other_namespace_is_ignored(
        self,
        store: InMemoryObjectStore,
        template: ScopeTemplate,
        instance_factory: Callable[..., ScopeInstance],
    ) -> None:
        """Instances in another namespace do not count."""
        result = await ClusterRoleSynchronizer(store).sync(
            template, [instance_factory(namespace="team-b")]
        )

        assert result.suppressed is True
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_referencer_for_other_template_is_ignored(
        self,
        store: InMemoryObjectStore,
        template: ScopeTemplate,
        instance_factory: Callable[..., ScopeInstance],
    ) -> None:
        """Instances naming another template do not count."""
        result = await ClusterRoleSynchronizer(store).sync(
            template, [instance_factory(template_name="other")]
        )

        assert result.suppressed is True
        assert store.writes == []


class TestCreate:
    """Test creation of missing ClusterRoles."""

    @pytest.mark.asyncio
    async def test_creates_missing_role(
        self, store: InMemoryObjectStore, template: ScopeTemplate, instance: ScopeInstance
    ) -> None:
        """A missing role is created with ownership labels."""
        result = await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert result.created == ["viewer"]
        role = await store.get_cluster_role("viewer")
        assert role is not None
        assert role.rules == template.spec.cluster_roles[0].rules
        assert role.metadata.labels[SCOPE_TEMPLATE_UID_KEY] == "u1"
        assert role.metadata.labels[SCOPE_TEMPLATE_HASH_KEY] == fingerprint(template.spec)

    @pytest.mark.asyncio
    async def test_creates_in_descriptor_order(
        self,
        store: InMemoryObjectStore,
        instance: ScopeInstance,
        template_factory: Callable[..., ScopeTemplate],
        rule_factory: Callable[..., PolicyRule],
    ) -> None:
        """Descriptors are handled in spec order."""
        template = template_factory(
            uid="u1",
            descriptors={
                "zeta": [rule_factory("get")],
                "alpha": [rule_factory("list")],
            },
        )
        await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert store.writes == [("create", "zeta"), ("create", "alpha")]


class TestNoOp:
    """Test that matching roles are left alone."""

    @pytest.mark.asyncio
    async def test_matching_role_is_not_written(
        self, store: InMemoryObjectStore, template: ScopeTemplate, instance: ScopeInstance
    ) -> None:
        """A role that matches the descriptor is not updated."""
        await _seed(store, template)

        result = await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert result.unchanged == ["viewer"]
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_matching_role_does_not_stop_later_descriptors(
        self,
        store: InMemoryObjectStore,
        instance: ScopeInstance,
        template_factory: Callable[..., ScopeTemplate],
        rule_factory: Callable[..., PolicyRule],
    ) -> None:
        """An up-to-date descriptor is skipped, not treated as the end of the pass."""
        viewer_only = template_factory(uid="u1", descriptors={"viewer": [rule_factory("get")]})
        both = template_factory(
            uid="u1",
            descriptors={"viewer": [rule_factory("get")], "editor": [rule_factory("update")]},
        )
        await _seed(store, viewer_only)
        # Bring the seeded role up to the new fingerprint so only editor is missing.
        existing = await store.get_cluster_role("viewer")
        assert existing is not None
        existing.metadata.labels[SCOPE_TEMPLATE_HASH_KEY] = fingerprint(both.spec)
        await store.update_cluster_role(existing)
        store.writes.clear()

        result = await ClusterRoleSynchronizer(store).sync(both, [instance])

        assert result.unchanged == ["viewer"]
        assert result.created == ["editor"]
        assert store.writes == [("create", "editor")]


class TestUpdate:
    """Test in-place updates of drifted roles."""

    @pytest.mark.asyncio
    async def test_rule_drift_is_overwritten(
        self, store: InMemoryObjectStore, template: ScopeTemplate, instance: ScopeInstance
    ) -> None:
        """Edited rules are restored from the descriptor."""
        await _seed(store, template)
        role = await store.get_cluster_role("viewer")
        assert role is not None
        role.rules = [PolicyRule(verbs=["*"], resources=["*"])]
        await store.update_cluster_role(role)
        store.writes.clear()

        result = await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert result.updated == ["viewer"]
        restored = await store.get_cluster_role("viewer")
        assert restored is not None
        assert restored.rules == template.spec.cluster_roles[0].rules
        assert restored.metadata.uid == role.metadata.uid

    @pytest.mark.asyncio
    async def test_missing_owner_reference_is_restored(
        self, store: InMemoryObjectStore, template: ScopeTemplate, instance: ScopeInstance
    ) -> None:
        """A role stripped of its owner reference is re-owned."""
        await _seed(store, template)
        role = await store.get_cluster_role("viewer")
        assert role is not None
        role.metadata.owner_references = []
        await store.update_cluster_role(role)
        store.writes.clear()

        result = await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert result.updated == ["viewer"]
        restored = await store.get_cluster_role("viewer")
        assert restored is not None
        assert [ref.uid for ref in restored.metadata.owner_references] == ["u1"]

    @pytest.mark.asyncio
    async def test_extra_labels_are_replaced(
        self, store: InMemoryObjectStore, template: ScopeTemplate, instance: ScopeInstance
    ) -> None:
        """The label set is replaced as a whole."""
        await _seed(store, template)
        role = await store.get_cluster_role("viewer")
        assert role is not None
        role.metadata.labels["team"] = "a"
        await store.update_cluster_role(role)
        store.writes.clear()

        result = await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert result.updated == ["viewer"]
        restored = await store.get_cluster_role("viewer")
        assert restored is not None
        assert "team" not in restored.metadata.labels

    @pytest.mark.asyncio
    async def test_update_keeps_store_name(
        self, store: InMemoryObjectStore, template: ScopeTemplate, instance: ScopeInstance
    ) -> None:
        """Matching is by label, so a role under another name is updated in place."""
        await _seed(store, template, name="viewer-abc12")
        role = await store.get_cluster_role("viewer-abc12")
        assert role is not None
        role.rules = []
        await store.update_cluster_role(role)
        store.writes.clear()

        result = await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert result.updated == ["viewer-abc12"]
        assert await store.get_cluster_role("viewer") is None


class TestErrors:
    """Test error propagation."""

    @pytest.mark.asyncio
    async def test_duplicate_owned_roles_raise(
        self, store: InMemoryObjectStore, template: ScopeTemplate, instance: ScopeInstance
    ) -> None:
        """Two roles for one descriptor are reported and nothing is written."""
        await _seed(store, template, name="viewer-1")
        await _seed(store, template, name="viewer-2")

        with pytest.raises(SyncError) as exc_info:
            await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert exc_info.value.generate_name == "viewer"
        assert isinstance(exc_info.value.cause, DuplicateOwnedResourceError)
        assert exc_info.value.cause.count == 2
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_store_errors_propagate_unchanged(
        self, template: ScopeTemplate, instance: ScopeInstance
    ) -> None:
        """Store failures surface as the SyncError cause."""
        outage = StoreUnavailableError("connection refused")
        store = AsyncMock()
        store.list_cluster_roles.side_effect = outage

        with pytest.raises(SyncError) as exc_info:
            await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert exc_info.value.cause is outage
        store.create_cluster_role.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_failure_is_not_retried(
        self, template: ScopeTemplate, instance: ScopeInstance
    ) -> None:
        """A failed create is attempted exactly once."""
        store = AsyncMock()
        store.list_cluster_roles.return_value = []
        store.create_cluster_role.side_effect = StoreUnavailableError("timeout")

        with pytest.raises(SyncError):
            await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert store.create_cluster_role.await_count == 1

    @pytest.mark.asyncio
    async def test_unselectable_owner_uid_is_a_hard_error(
        self,
        store: InMemoryObjectStore,
        instance: ScopeInstance,
        template_factory: Callable[..., ScopeTemplate],
    ) -> None:
        """A UID that cannot be a label value fails before any write."""
        template = template_factory(uid="team-a:scope")

        with pytest.raises(SyncError) as exc_info:
            await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert exc_info.value.generate_name == "viewer"
        assert isinstance(exc_info.value.cause, ListFilterConstructionError)
        assert store.writes == []


class TestIsolation:
    """Test that other templates' roles are never touched."""

    @pytest.mark.asyncio
    async def test_other_owner_with_same_generate_name_is_ignored(
        self,
        store: InMemoryObjectStore,
        template: ScopeTemplate,
        instance: ScopeInstance,
        template_factory: Callable[..., ScopeTemplate],
    ) -> None:
        """Roles owned by another UID are invisible to this template."""
        other = template_factory(name="other", uid="u2")
        await _seed(store, other, name="viewer-other")

        result = await ClusterRoleSynchronizer(store).sync(template, [instance])

        assert result.created == ["viewer"]
        untouched = await store.get_cluster_role("viewer-other")
        assert untouched is not None
        assert untouched.metadata.labels[SCOPE_TEMPLATE_UID_KEY] == "u2"
        assert untouched.metadata.resource_version == 1
