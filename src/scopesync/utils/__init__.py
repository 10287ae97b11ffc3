"""ScopeSync utility modules."""

from scopesync.utils.hashing import compute_content_checksum, fingerprint
from scopesync.utils.logging import configure_logging
from scopesync.utils.retry import with_requeue

__all__ = [
    "compute_content_checksum",
    "configure_logging",
    "fingerprint",
    "with_requeue",
]
