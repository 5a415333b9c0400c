"""
TimeProviderPort - Clock interface.

Order ages and the publish-time band are computed from this clock instead
of calling time.time() directly, so tests can pin and advance time.

Implementations:
- SystemTimeAdapter: wall clock (production)
- FixedTimeAdapter: pinned clock (tests, simulations)
"""
from __future__ import annotations
from abc import ABC, abstractmethod
import time


class TimeProviderPort(ABC):
    """
    Clock port interface.

    Returns whole unix seconds, matching the resolution of order ages and
    price publish times.
    """

    @abstractmethod
    def now(self) -> int:
        """Current unix time in seconds."""
        pass


class SystemTimeAdapter(TimeProviderPort):
    """Wall clock adapter."""

    def now(self) -> int:
        return int(time.time())


class FixedTimeAdapter(TimeProviderPort):
    """
    Pinned clock adapter (tests).

    Time only moves when set_time() or advance() is called.
    """

    def __init__(self, fixed_time: int):
        self._fixed_time = fixed_time

    def set_time(self, new_time: int) -> None:
        self._fixed_time = new_time

    def advance(self, seconds: int) -> int:
        """Move the clock forward and return the new time."""
        self._fixed_time += seconds
        return self._fixed_time

    def now(self) -> int:
        return self._fixed_time
