"""
Core benchmark infrastructure.
"""

from .benchmark_controller import BenchmarkController
from .cancellation import CancellationToken
from .config import BenchmarkConfig
from .device_info import DeviceInfo
from .errors import BenchmarkError, InferenceError, ModelLoadError, SchemaError
from .metrics import MetricsCollector, SessionStatistics
from .phases import Phase, PhaseTimer
from .state import ModelInfo, RunRequest, RunState

__all__ = [
    "BenchmarkController",
    "BenchmarkConfig",
    "BenchmarkError",
    "CancellationToken",
    "DeviceInfo",
    "InferenceError",
    "MetricsCollector",
    "ModelInfo",
    "ModelLoadError",
    "Phase",
    "PhaseTimer",
    "RunRequest",
    "RunState",
    "SchemaError",
    "SessionStatistics",
]
