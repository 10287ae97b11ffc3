"""Ownership tagging for ClusterRoles created from ScopeTemplates.

Ownership and staleness are recorded as flat labels so they can be
recovered with label selectors alone. The label keys are part of the
compatibility surface: objects written by one version must remain
recognizable to the next.
"""

from scopesync.models import (
    ClusterRole,
    ClusterRoleTemplate,
    LabelSelector,
    ObjectMeta,
    Operator,
    OwnerReference,
    ScopeTemplate,
)

# Tracks the template that owns a ClusterRole.
SCOPE_TEMPLATE_UID_KEY = "operators.coreos.io/scopeTemplateUID"

# Tracks the template spec fingerprint a ClusterRole was written under.
SCOPE_TEMPLATE_HASH_KEY = "operators.coreos.io/scopeTemplateHash"

# Tracks which descriptor of the template produced a ClusterRole.
GENERATE_NAME_KEY = "operators.coreos.io/generateName"


def owner_reference_for(template: ScopeTemplate) -> OwnerReference:
    """Build the owner reference pointing back at a template."""
    return OwnerReference(
        api_version=template.api_version,
        kind=template.kind,
        name=template.metadata.name,
        uid=template.metadata.uid,
    )


def ownership_labels(
    template: ScopeTemplate, descriptor: ClusterRoleTemplate, template_hash: str
) -> dict[str, str]:
    """Build the owner-UID, content-hash and generate-name labels."""
    return {
        SCOPE_TEMPLATE_UID_KEY: template.metadata.uid,
        SCOPE_TEMPLATE_HASH_KEY: template_hash,
        GENERATE_NAME_KEY: descriptor.generate_name,
    }


def desired_cluster_role(
    template: ScopeTemplate, descriptor: ClusterRoleTemplate, template_hash: str
) -> ClusterRole:
    """
    Build the ClusterRole a descriptor should produce.

    Args:
        template: Owning template.
        descriptor: Descriptor from the template spec.
        template_hash: Current fingerprint of the template spec.

    Returns:
        Unsaved ClusterRole named after the descriptor's generate-name.
    """
    return ClusterRole(
        metadata=ObjectMeta(
            name=descriptor.generate_name,
            labels=ownership_labels(template, descriptor, template_hash),
            owner_references=[owner_reference_for(template)],
        ),
        rules=[rule.model_copy(deep=True) for rule in descriptor.rules],
    )


def is_owned_by_label(obj: ClusterRole, owner: ScopeTemplate) -> bool:
    """Check the owner-UID label and an owner reference both name the template."""
    uid = owner.metadata.uid
    if obj.metadata.labels.get(SCOPE_TEMPLATE_UID_KEY) != uid:
        return False
    return any(ref.uid == uid for ref in obj.metadata.owner_references)


def owned_selector(template_uid: str, generate_name: str) -> LabelSelector:
    """Selector for the ClusterRole a template owns for one descriptor."""
    return LabelSelector.from_labels(
        {
            SCOPE_TEMPLATE_UID_KEY: template_uid,
            GENERATE_NAME_KEY: generate_name,
        }
    )


def stale_selector(template_uid: str, template_hash: str) -> LabelSelector:
    """Selector for ClusterRoles a template owns under a different fingerprint."""
    return LabelSelector.from_labels({SCOPE_TEMPLATE_UID_KEY: template_uid}).add(
        SCOPE_TEMPLATE_HASH_KEY, Operator.NOT_EQUALS, template_hash
    )
