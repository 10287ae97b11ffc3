"""Object models for ScopeTemplates, ScopeInstances and ClusterRoles.

Field names are snake_case in Python and camelCase on the wire,
matching the Kubernetes manifests these objects are loaded from.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from scopesync.errors import ListFilterConstructionError
from scopesync.models.selectors import validate_label_value

SCOPE_API_VERSION = "operators.io.operator-framework/v1"
RBAC_API_VERSION = "rbac.authorization.k8s.io/v1"


class _Resource(BaseModel):
    """Base for wire-compatible models."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NamespacedName(BaseModel):
    """Identity of a namespaced object."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str

    @classmethod
    def parse(cls, value: str, default_namespace: str = "default") -> "NamespacedName":
        """
        Parse ``namespace/name`` or a bare ``name``.

        Args:
            value: Identity string.
            default_namespace: Namespace used when none is given.

        Returns:
            Parsed NamespacedName.
        """
        namespace, sep, name = value.partition("/")
        if not sep:
            return cls(namespace=default_namespace, name=value)
        if not namespace or not name or "/" in name:
            raise ValueError(f"Invalid object identity: {value!r}")
        return cls(namespace=namespace, name=name)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class OwnerReference(_Resource):
    """Back-reference from a child object to the object that owns it."""

    api_version: str
    kind: str
    name: str
    uid: str


class ObjectMeta(_Resource):
    """Metadata common to every stored object."""

    name: str = Field(min_length=1)
    namespace: str | None = None
    uid: str = ""
    resource_version: int = 0
    labels: dict[str, str] = Field(default_factory=dict)
    owner_references: list[OwnerReference] = Field(default_factory=list)


class PolicyRule(_Resource):
    """A single RBAC rule. Opaque to the reconciliation logic."""

    verbs: list[str] = Field(default_factory=list)
    api_groups: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    resource_names: list[str] = Field(default_factory=list)
    non_resource_urls: list[str] = Field(default_factory=list, alias="nonResourceURLs")


class ClusterRoleTemplate(_Resource):
    """Descriptor for one ClusterRole a ScopeTemplate should produce."""

    generate_name: str = Field(min_length=1)
    rules: list[PolicyRule] = Field(default_factory=list)

    @field_validator("generate_name")
    @classmethod
    def check_label_value(cls, v: str) -> str:
        """Reject generate-names that are not valid label values."""
        try:
            validate_label_value(v)
        except ListFilterConstructionError as e:
            raise ValueError(str(e)) from e
        return v


class ScopeTemplateSpec(_Resource):
    """Desired state declared by a ScopeTemplate."""

    cluster_roles: list[ClusterRoleTemplate] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_generate_names(self) -> "ScopeTemplateSpec":
        """Reject specs where two descriptors share a generate-name."""
        seen: set[str] = set()
        for descriptor in self.cluster_roles:
            if descriptor.generate_name in seen:
                raise ValueError(f"Duplicate generateName in spec: {descriptor.generate_name}")
            seen.add(descriptor.generate_name)
        return self


class ScopeTemplate(_Resource):
    """Declarative template for a set of ClusterRoles."""

    api_version: str = SCOPE_API_VERSION
    kind: Literal["ScopeTemplate"] = "ScopeTemplate"
    metadata: ObjectMeta
    spec: ScopeTemplateSpec = Field(default_factory=ScopeTemplateSpec)

    @property
    def key(self) -> NamespacedName:
        """Namespaced identity of this template."""
        return NamespacedName(namespace=self.metadata.namespace or "", name=self.metadata.name)


class ScopeInstanceSpec(_Resource):
    """Spec of a ScopeInstance."""

    scope_template_name: str = ""


class ScopeInstance(_Resource):
    """Referencer that asserts a ScopeTemplate is in use in its namespace."""

    api_version: str = SCOPE_API_VERSION
    kind: Literal["ScopeInstance"] = "ScopeInstance"
    metadata: ObjectMeta
    spec: ScopeInstanceSpec = Field(default_factory=ScopeInstanceSpec)

    def references(self, template: ScopeTemplate) -> bool:
        """Check whether this instance names the template in the template's namespace."""
        return (
            self.metadata.namespace == template.metadata.namespace
            and self.spec.scope_template_name == template.metadata.name
        )


class ClusterRole(_Resource):
    """Cluster-scoped child resource created on a ScopeTemplate's behalf."""

    api_version: str = RBAC_API_VERSION
    kind: Literal["ClusterRole"] = "ClusterRole"
    metadata: ObjectMeta
    rules: list[PolicyRule] = Field(default_factory=list)

    @property
    def name(self) -> str:
        """Store name of the ClusterRole."""
        return self.metadata.name
