"""Loading ScopeTemplate and ScopeInstance manifests from YAML."""

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from loguru import logger
from pydantic import ValidationError

from scopesync.errors import ManifestError
from scopesync.models import ScopeInstance, ScopeTemplate

if TYPE_CHECKING:
    from scopesync.ports import ManagedStorePort

DEFAULT_NAMESPACE = "default"

_KINDS: dict[str, type[ScopeTemplate] | type[ScopeInstance]] = {
    "ScopeTemplate": ScopeTemplate,
    "ScopeInstance": ScopeInstance,
}


def parse_manifests(text: str) -> list[ScopeTemplate | ScopeInstance]:
    """
    Parse a multi-document YAML string into store objects.

    Empty documents are skipped. Objects without a namespace are
    placed in the default namespace.

    Raises:
        ManifestError: On invalid YAML, unknown kinds or invalid fields.
    """
    try:
        documents = list(yaml.safe_load_all(text))
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML in manifest: {e}") from e

    objects: list[ScopeTemplate | ScopeInstance] = []
    for index, document in enumerate(documents):
        if document is None:
            continue
        if not isinstance(document, dict):
            raise ManifestError(f"Document {index} must be a mapping")

        kind = document.get("kind")
        model = _KINDS.get(kind) if isinstance(kind, str) else None
        if model is None:
            raise ManifestError(f"Document {index} has unsupported kind: {kind!r}")

        try:
            obj = model.model_validate(document)
        except ValidationError as e:
            raise ManifestError(f"Document {index} ({kind}) is invalid: {e}") from e

        if not obj.metadata.namespace:
            obj.metadata.namespace = DEFAULT_NAMESPACE
        objects.append(obj)

    return objects


def load_manifests(path: Path) -> list[ScopeTemplate | ScopeInstance]:
    """
    Load manifests from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ManifestError: If the content cannot be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Manifest file not found: {path}")
    return parse_manifests(path.read_text())


async def apply_manifests(
    store: "ManagedStorePort", objects: Iterable[ScopeTemplate | ScopeInstance]
) -> list[ScopeTemplate | ScopeInstance]:
    """Create or replace each object in the store, in order."""
    applied: list[ScopeTemplate | ScopeInstance] = []
    for obj in objects:
        if isinstance(obj, ScopeTemplate):
            stored: ScopeTemplate | ScopeInstance = await store.apply_scope_template(obj)
        else:
            stored = await store.apply_scope_instance(obj)
        logger.info(
            "Applied {} {}/{}", stored.kind, stored.metadata.namespace, stored.metadata.name
        )
        applied.append(stored)
    return applied
