"""
Latency collection and statistics aggregation.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional

import numpy as np


@dataclass(frozen=True)
class SessionStatistics:
    """Aggregated results of a benchmark session.

    Latencies are in milliseconds and cover process-phase samples only,
    while ``total_inferences`` counts every successful call of the session.
    """

    total_inferences: int
    sample_count: int = 0
    mean_latency: float = 0.0
    std_dev: float = 0.0
    min_latency: float = 0.0
    max_latency: float = 0.0
    p50_latency: float = 0.0
    p95_latency: float = 0.0
    mean_power: Optional[float] = None  # watts

    @property
    def throughput(self) -> float:
        """Inferences per second implied by the mean latency."""
        if self.mean_latency <= 0:
            return 0.0
        return 1000.0 / self.mean_latency


class MetricsCollector:
    """Collect latency samples for one benchmark session."""

    def __init__(self):
        self._samples: List[float] = []
        self._power_samples: List[float] = []
        self._last_time: Optional[float] = None

    @contextmanager
    def time_execution(self):
        """Context manager timing the wrapped block in milliseconds.

        The measurement is only stored when the block exits normally, so a
        failed call leaves ``last_time`` as None.
        """
        self._last_time = None
        start_time = time.perf_counter()
        yield
        self._last_time = (time.perf_counter() - start_time) * 1000

    @property
    def last_time(self) -> Optional[float]:
        return self._last_time

    def add_sample(self, latency: float) -> None:
        """Record one latency sample (milliseconds)."""
        if latency < 0:
            raise ValueError(f"Latency cannot be negative: {latency}")
        self._samples.append(latency)

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    def get_samples(self) -> List[float]:
        return self._samples.copy()

    def clear_samples(self) -> None:
        self._samples.clear()
        self._power_samples.clear()

    def add_power_sample(self, watts: float) -> None:
        """Record one power reading (watts)."""
        self._power_samples.append(watts)

    def mean_power(self) -> Optional[float]:
        """Mean power draw, None when no reading was taken."""
        if not self._power_samples:
            return None
        return float(np.mean(self._power_samples))

    def mean_latency(self) -> float:
        """Arithmetic mean of the samples, 0.0 when there are none."""
        if not self._samples:
            return 0.0
        return float(np.mean(self._samples))

    def summarize(self, total_inferences: int) -> SessionStatistics:
        """Build session statistics from the collected samples.

        Args:
            total_inferences: Successful inference calls across all phases

        Returns:
            SessionStatistics with zeroed latency fields if nothing was sampled
        """
        if not self._samples:
            return SessionStatistics(
                total_inferences=total_inferences, mean_power=self.mean_power()
            )

        times = np.asarray(self._samples, dtype=np.float64)
        return SessionStatistics(
            total_inferences=total_inferences,
            sample_count=len(times),
            mean_latency=float(np.mean(times)),
            std_dev=float(np.std(times)),
            min_latency=float(np.min(times)),
            max_latency=float(np.max(times)),
            p50_latency=float(np.percentile(times, 50)),
            p95_latency=float(np.percentile(times, 95)),
            mean_power=self.mean_power(),
        )
