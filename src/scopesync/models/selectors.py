"""Label selectors used to filter child resources in the store.

Only equality and inequality requirements are supported, which is
all ownership and staleness tracking needs.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from scopesync.errors import ListFilterConstructionError

_NAME_RE = re.compile(r"^[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$")
_DNS_SUBDOMAIN_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")

MAX_NAME_LENGTH = 63
MAX_PREFIX_LENGTH = 253


class Operator(StrEnum):
    """Selector requirement operators."""

    EQUALS = "="
    NOT_EQUALS = "!="


def validate_label_key(key: str) -> None:
    """
    Validate a label key of the form ``[prefix/]name``.

    Raises:
        ListFilterConstructionError: If the key is malformed.
    """
    prefix, sep, name = key.rpartition("/")
    if sep:
        if not prefix or len(prefix) > MAX_PREFIX_LENGTH or not _DNS_SUBDOMAIN_RE.match(prefix):
            raise ListFilterConstructionError(f"invalid label key prefix: {key!r}")
    if not name or len(name) > MAX_NAME_LENGTH or not _NAME_RE.match(name):
        raise ListFilterConstructionError(f"invalid label key name: {key!r}")


def validate_label_value(value: str) -> None:
    """
    Validate a label value. Empty values are allowed.

    Raises:
        ListFilterConstructionError: If the value is malformed.
    """
    if not value:
        return
    if len(value) > MAX_NAME_LENGTH or not _NAME_RE.match(value):
        raise ListFilterConstructionError(f"invalid label value: {value!r}")


@dataclass(frozen=True)
class Requirement:
    """Single key/operator/value predicate."""

    key: str
    operator: Operator
    value: str

    def __post_init__(self) -> None:
        validate_label_key(self.key)
        validate_label_value(self.value)

    def matches(self, labels: Mapping[str, str]) -> bool:
        """Evaluate against a label set. NotEquals matches when the key is absent."""
        if self.operator is Operator.EQUALS:
            return labels.get(self.key) == self.value
        return labels.get(self.key) != self.value

    def __str__(self) -> str:
        return f"{self.key}{self.operator.value}{self.value}"


@dataclass(frozen=True)
class LabelSelector:
    """Conjunction of requirements."""

    requirements: tuple[Requirement, ...] = field(default_factory=tuple)

    @classmethod
    def from_labels(cls, labels: Mapping[str, str]) -> "LabelSelector":
        """Build a selector requiring every given label to match exactly."""
        return cls(
            tuple(Requirement(key, Operator.EQUALS, value) for key, value in labels.items())
        )

    def add(self, key: str, operator: Operator | str, value: str) -> "LabelSelector":
        """Return a new selector with one more requirement."""
        try:
            op = Operator(operator)
        except ValueError as e:
            raise ListFilterConstructionError(f"unsupported operator: {operator!r}") from e
        return LabelSelector((*self.requirements, Requirement(key, op, value)))

    def matches(self, labels: Mapping[str, str]) -> bool:
        """Check whether every requirement holds for the label set."""
        return all(req.matches(labels) for req in self.requirements)

    def __str__(self) -> str:
        return ",".join(str(req) for req in self.requirements)
