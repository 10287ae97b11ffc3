"""Shared pytest fixtures for ScopeSync tests."""

from collections.abc import Callable

import pytest

from scopesync.models import (
    ClusterRoleTemplate,
    ObjectMeta,
    PolicyRule,
    ScopeInstance,
    ScopeInstanceSpec,
    ScopeTemplate,
    ScopeTemplateSpec,
)
from scopesync.storage.memory_store import InMemoryObjectStore


def make_rule(*verbs: str, resources: tuple[str, ...] = ("pods",)) -> PolicyRule:
    """Build a policy rule for core-group resources."""
    return PolicyRule(verbs=list(verbs), api_groups=[""], resources=list(resources))


def make_template(
    name: str = "scope",
    namespace: str = "team-a",
    uid: str = "",
    descriptors: dict[str, list[PolicyRule]] | None = None,
) -> ScopeTemplate:
    """Build a ScopeTemplate from a generate-name to rules mapping."""
    if descriptors is None:
        descriptors = {"viewer": [make_rule("get", "list")]}
    return ScopeTemplate(
        metadata=ObjectMeta(name=name, namespace=namespace, uid=uid),
        spec=ScopeTemplateSpec(
            cluster_roles=[
                ClusterRoleTemplate(generate_name=generate_name, rules=rules)
                for generate_name, rules in descriptors.items()
            ]
        ),
    )


def make_instance(
    template_name: str = "scope", namespace: str = "team-a", name: str = "instance"
) -> ScopeInstance:
    """Build a ScopeInstance referencing a template."""
    return ScopeInstance(
        metadata=ObjectMeta(name=name, namespace=namespace),
        spec=ScopeInstanceSpec(scope_template_name=template_name),
    )


@pytest.fixture
def store() -> InMemoryObjectStore:
    """Provide an empty in-memory object store."""
    return InMemoryObjectStore()


@pytest.fixture
def template() -> ScopeTemplate:
    """Template with a single 'viewer' descriptor and a fixed UID."""
    return make_template(uid="u1")


@pytest.fixture
def instance() -> ScopeInstance:
    """Instance referencing the default template."""
    return make_instance()


@pytest.fixture
def template_factory() -> Callable[..., ScopeTemplate]:
    """Provide the ScopeTemplate builder."""
    return make_template


@pytest.fixture
def instance_factory() -> Callable[..., ScopeInstance]:
    """Provide the ScopeInstance builder."""
    return make_instance


@pytest.fixture
def rule_factory() -> Callable[..., PolicyRule]:
    """Provide the PolicyRule builder."""
    return make_rule
