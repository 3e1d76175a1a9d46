"""
Data model shared between the benchmark controller and its observers.
"""

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .metrics import SessionStatistics
from .phases import Phase


@dataclass(frozen=True)
class ModelInfo:
    """A discovered model artifact."""

    name: str
    locator: Path


@dataclass(frozen=True)
class RunRequest:
    """A model and how many benchmark runs to perform on it."""

    model: ModelInfo
    run_count: int = 1

    def __post_init__(self):
        if self.model is None:
            raise ValueError("A model is required to start a benchmark")
        if self.run_count < 1:
            raise ValueError(f"run_count must be at least 1, got {self.run_count}")


@dataclass
class RunState:
    """Published progress of a benchmark session.

    Only the controller mutates a RunState; observers always receive copies
    from :meth:`snapshot`.
    """

    phase: Phase = Phase.IDLE
    progress: float = 0.0
    time_remaining: float = 0.0  # seconds
    inference_count: int = 0
    current_run: int = 0
    total_runs: int = 1
    error_message: Optional[str] = None
    total_inferences: int = 0
    average_latency: float = 0.0  # milliseconds
    statistics: Optional[SessionStatistics] = None
    power_draw: Optional[float] = None  # watts, latest process-phase reading

    def snapshot(self) -> "RunState":
        return copy.copy(self)
