"""Protocols for dependency injection in the notes store."""

from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueProtocol(Protocol):
    """Protocol for synchronous string key-value stores."""

    def get(self, key: str) -> str | None:
        """Return the value stored under key, or None if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, overwriting any previous value."""
        ...


@runtime_checkable
class SchedulerProtocol(Protocol):
    """Protocol for keyed one-shot and repeating timers.

    Arming a key that is already scheduled cancels the old timer first.
    """

    def schedule_once(self, key: str, delay: float, fn: Callable[[], None]) -> None:
        """Run fn once after delay seconds."""
        ...

    def schedule_repeating(self, key: str, interval: float, fn: Callable[[], None]) -> None:
        """Run fn every interval seconds until cancelled."""
        ...

    def cancel(self, key: str) -> None:
        """Cancel the timer for key, if any."""
        ...

    def is_scheduled(self, key: str) -> bool:
        """Return True if a timer is armed for key."""
        ...


@runtime_checkable
class NotifierProtocol(Protocol):
    """Protocol for user-facing notifications."""

    def show(self, message: str, level: str = "success") -> None:
        """Show a message. Level is one of success, error, warning, info."""
        ...
