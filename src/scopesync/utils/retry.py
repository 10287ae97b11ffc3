"""Requeue utilities with exponential backoff.

The reconciliation core never retries. Callers that trigger
reconciliation use these helpers to re-invoke it after
transient failures.
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

import backoff
from loguru import logger

from scopesync.errors import ReconcileError, StoreError

T = TypeVar("T")


def on_backoff(details: Mapping[str, Any]) -> None:
    """Log requeue attempts."""
    logger.warning(
        "Requeueing {}: attempt={} wait={:.2f}s error={}",
        details["target"].__name__,
        details["tries"],
        details["wait"],
        details["exception"],
    )


def on_giveup(details: Mapping[str, Any]) -> None:
    """Log when requeues are exhausted or the error is permanent."""
    logger.error(
        "Gave up on {}: attempts={} error={}",
        details["target"].__name__,
        details["tries"],
        details["exception"],
    )


def is_permanent(error: Exception) -> bool:
    """Return True for errors that re-invocation cannot fix."""
    return not getattr(error, "retryable", False)


def with_requeue(
    func: Callable[..., Awaitable[T]],
    max_tries: int = 5,
    max_time: float = 60.0,
) -> Callable[..., Awaitable[T]]:
    """
    Wrap a coroutine function so retryable failures re-invoke it.

    Args:
        func: Coroutine function to wrap, typically ``reconcile``.
        max_tries: Maximum number of invocations.
        max_time: Maximum total time in seconds.

    Returns:
        Wrapped coroutine function.
    """
    return backoff.on_exception(
        backoff.expo,
        (ReconcileError, StoreError),
        max_tries=max_tries,
        max_time=max_time,
        giveup=is_permanent,
        on_backoff=on_backoff,
        on_giveup=on_giveup,
    )(func)
