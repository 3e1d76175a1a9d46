"""
Benchmark phases and the timer that drives each phase loop.
"""

import time
from enum import Enum
from typing import Callable, Optional


class Phase(Enum):
    """Stage of a benchmark session."""

    IDLE = "idle"
    WARMUP = "warmup"
    COOLDOWN = "cooldown"
    PROCESS = "process"
    COMPLETED = "completed"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def is_active(self) -> bool:
        """True for the phases that only exist inside a running session."""
        return self in (Phase.WARMUP, Phase.COOLDOWN, Phase.PROCESS)


_DESCRIPTIONS = {
    Phase.IDLE: "Ready to start",
    Phase.WARMUP: "Warming up...",
    Phase.COOLDOWN: "Cooling down...",
    Phase.PROCESS: "Processing...",
    Phase.COMPLETED: "Completed",
}

# share of a single run's progress slice taken by each phase: (offset, width)
PHASE_WEIGHTS = {
    Phase.WARMUP: (0.0, 0.1),
    Phase.COOLDOWN: (0.1, 0.2),
    Phase.PROCESS: (0.3, 0.7),
}


class PhaseTimer:
    """Track elapsed time against a target duration."""

    def __init__(
        self,
        target_duration: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize phase timer.

        Args:
            target_duration: Phase length in seconds
            clock: Monotonic clock returning seconds
        """
        self.target_duration = target_duration
        self._clock = clock
        self._start_time: Optional[float] = None

    def start(self) -> None:
        """Start (or restart) timing from now."""
        self._start_time = self._clock()

    @property
    def started(self) -> bool:
        return self._start_time is not None

    @property
    def elapsed(self) -> float:
        """Seconds since start(), 0.0 before the timer is started."""
        if self._start_time is None:
            return 0.0
        return max(0.0, self._clock() - self._start_time)

    @property
    def remaining(self) -> float:
        return max(0.0, self.target_duration - self.elapsed)

    @property
    def fraction(self) -> float:
        """Fraction of the target duration that has elapsed, in [0, 1]."""
        if self.target_duration <= 0:
            return 1.0
        return min(1.0, self.elapsed / self.target_duration)

    @property
    def expired(self) -> bool:
        return self.elapsed >= self.target_duration
