"""
Power Bench

Repeatable warmup, cooldown and measured inference runs for observing the
power and performance behaviour of on-device models.
"""

__version__ = "0.1.0"
__author__ = "Arvin Singh"
__email__ = "arvinsingh@protonmail.com"

from .core.benchmark_controller import BenchmarkController
from .core.config import BenchmarkConfig
from .core.device_info import DeviceInfo
from .core.phases import Phase
from .core.state import ModelInfo, RunState
from .inference.catalog import ModelCatalog
from .inference.engine import TorchScriptEngine

__all__ = [
    "BenchmarkController",
    "BenchmarkConfig",
    "DeviceInfo",
    "ModelCatalog",
    "ModelInfo",
    "Phase",
    "RunState",
    "TorchScriptEngine",
]
