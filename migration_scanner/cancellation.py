"""Cooperative cancellation shared across one analysis run."""

from __future__ import annotations


class AnalysisCancelled(Exception):
    """Raised when a run observes a cancelled token."""


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise AnalysisCancelled("analysis was cancelled")
