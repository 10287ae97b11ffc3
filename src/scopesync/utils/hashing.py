"""Hashing utilities for template fingerprints."""

import hashlib
import json

from pydantic import BaseModel

# Label values are limited to 63 characters.
FINGERPRINT_LENGTH = 32


def compute_content_checksum(content: str | bytes) -> str:
    """
    Compute SHA-256 checksum of content.

    Args:
        content: String or bytes content.

    Returns:
        Hex-encoded SHA-256 hash.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    return hashlib.sha256(content).hexdigest()


def canonical_json(model: BaseModel) -> str:
    """Serialize a model with sorted object keys and list order preserved."""
    return json.dumps(
        model.model_dump(mode="json", by_alias=True),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def fingerprint(spec: BaseModel) -> str:
    """
    Compute the content fingerprint of a template spec.

    The result is sensitive to descriptor order and short enough
    to be stored as a label value.

    Args:
        spec: Template spec model.

    Returns:
        Truncated hex SHA-256 of the canonical JSON form.
    """
    return compute_content_checksum(canonical_json(spec))[:FINGERPRINT_LENGTH]
