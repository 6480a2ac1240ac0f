"""Cooperative cancellation.

A token is polled at fixed points: before a directory is opened, once per
directory entry, and every ``cancellation_check_interval`` lines of a
streamed read. Once it reports cancelled it stays cancelled; callers stop
and return whatever they have accumulated.
"""

from __future__ import annotations

from typing import Callable, Optional


class CancellationToken:
    """Wraps an optional caller predicate plus an explicit ``cancel()``."""

    def __init__(self, predicate: Optional[Callable[[], bool]] = None):
        self._predicate = predicate
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        """Poll the token; latches once the predicate returns true."""
        if not self._cancelled and self._predicate is not None and self._predicate():
            self._cancelled = True
        return self._cancelled

    @classmethod
    def coerce(
        cls, value: "Optional[CancellationToken | Callable[[], bool]]"
    ) -> "CancellationToken":
        """Accept a token, a bare predicate, or nothing."""
        if isinstance(value, CancellationToken):
            return value
        return cls(value)
