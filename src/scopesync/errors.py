"""ScopeSync error types.

All custom exceptions inherit from ScopeSyncError to allow
catching any ScopeSync-specific error.
"""

from enum import StrEnum


class ScopeSyncError(Exception):
    """Base exception for all ScopeSync errors."""

    pass


class ConfigurationError(ScopeSyncError):
    """Invalid configuration."""

    pass


class ManifestError(ScopeSyncError):
    """A manifest file could not be parsed into store objects."""

    pass


class NotFoundError(ScopeSyncError):
    """Requested object does not exist in the store."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind} {name!r} not found")
        self.kind = kind
        self.name = name


class StoreError(ScopeSyncError):
    """Object store operation failed."""

    def __init__(self, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class StoreUnavailableError(StoreError):
    """Store could not be reached; the operation may succeed later."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


class ConflictError(StoreError):
    """Write rejected because the object changed since it was read."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


class AlreadyExistsError(StoreError):
    """Create rejected because an object with that name exists."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind} {name!r} already exists", retryable=False)
        self.kind = kind
        self.name = name


class ListFilterConstructionError(ScopeSyncError):
    """A label selector could not be built from the given key or values."""

    pass


class DuplicateOwnedResourceError(ScopeSyncError):
    """More than one child resource carries the same owner and generate-name."""

    def __init__(self, generate_name: str, count: int) -> None:
        super().__init__(f"more than one ClusterRole found {generate_name} (count={count})")
        self.generate_name = generate_name
        self.count = count


class SyncError(ScopeSyncError):
    """Synchronization failed while handling one descriptor."""

    def __init__(self, generate_name: str, cause: Exception) -> None:
        super().__init__(f"{generate_name}: {cause}")
        self.generate_name = generate_name
        self.cause = cause


class ReconcilePhase(StrEnum):
    """Phase of a reconciliation pass that produced an error."""

    CREATE = "create ClusterRoles"
    CLEANUP = "delete stale ClusterRoles"


class ReconcileError(ScopeSyncError):
    """A reconciliation pass failed.

    Names the phase and, where known, the generate-name of the
    descriptor being handled so repeated failures are diagnosable.
    """

    def __init__(
        self,
        phase: ReconcilePhase,
        cause: Exception,
        generate_name: str | None = None,
    ) -> None:
        if generate_name:
            message = f"{phase.value} [{generate_name}]: {cause}"
        else:
            message = f"{phase.value}: {cause}"
        super().__init__(message)
        self.phase = phase
        self.cause = cause
        self.generate_name = generate_name

    @property
    def retryable(self) -> bool:
        """Whether blind re-invocation may succeed without outside changes."""
        return isinstance(self.cause, StoreError) and self.cause.retryable
