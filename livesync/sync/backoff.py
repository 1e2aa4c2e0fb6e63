"""
Backoff strategies for polling loops.

The settle poller waits a fixed interval between attempts; the strategy
is pluggable so tests can poll without sleeping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class BackoffStrategy(ABC):
    """
    Abstract base for backoff delay calculation.

    Backoff strategies determine how long to wait between attempts.
    """

    @abstractmethod
    def get_delay(self, attempt: int) -> float:
        """
        Calculate delay before the next attempt.

        Args:
            attempt: Current attempt number (1-indexed)

        Returns:
            Delay in seconds before next attempt
        """
        ...

    def reset(self) -> None:
        """Reset any internal state (for reuse)."""


@dataclass
class NoBackoff(BackoffStrategy):
    """No delay between attempts. Use for tests."""

    def get_delay(self, attempt: int) -> float:
        return 0.0


@dataclass
class ConstantBackoff(BackoffStrategy):
    """
    Fixed delay between attempts.

    Example:
        backoff = ConstantBackoff(delay=0.5)
        # Always waits 500ms between polls
    """

    delay: float = 0.5

    def get_delay(self, attempt: int) -> float:
        return self.delay


__all__ = [
    "BackoffStrategy",
    "ConstantBackoff",
    "NoBackoff",
]
