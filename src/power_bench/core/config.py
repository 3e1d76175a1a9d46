"""
Benchmark timing configuration.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BenchmarkConfig:
    """Phase durations and pauses for a benchmark session.

    All values are in seconds. A phase duration of zero or less makes that
    phase perform no iterations at all.
    """

    warmup_duration: float = 6.0
    cooldown_duration: float = 12.0
    process_duration: float = 42.0
    inter_run_pause: float = 2.0
    cooldown_interval: float = 0.1
    power_sample_interval: float = 1.0

    def __post_init__(self):
        if self.cooldown_interval <= 0:
            raise ValueError(
                f"cooldown_interval must be positive, got {self.cooldown_interval}"
            )
