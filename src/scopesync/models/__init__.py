"""Data models for ScopeSync."""

from scopesync.models.resources import (
    ClusterRole,
    ClusterRoleTemplate,
    NamespacedName,
    ObjectMeta,
    OwnerReference,
    PolicyRule,
    ScopeInstance,
    ScopeInstanceSpec,
    ScopeTemplate,
    ScopeTemplateSpec,
)
from scopesync.models.selectors import LabelSelector, Operator, Requirement

__all__ = [
    "ClusterRole",
    "ClusterRoleTemplate",
    "LabelSelector",
    "NamespacedName",
    "ObjectMeta",
    "Operator",
    "OwnerReference",
    "PolicyRule",
    "Requirement",
    "ScopeInstance",
    "ScopeInstanceSpec",
    "ScopeTemplate",
    "ScopeTemplateSpec",
]
