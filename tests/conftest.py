"""
Shared fixtures for the power-bench test suite.
"""

import asyncio
from pathlib import Path

import orjson
import pytest
import torch

from power_bench.core.config import BenchmarkConfig
from power_bench.core.errors import InferenceError, ModelLoadError
from power_bench.core.state import ModelInfo
from power_bench.inference.engine import SCHEMA_FILE, InferenceEngine, ModelHandle
from power_bench.inference.schema import DoubleField, MultiArrayField


class FakeEngine(InferenceEngine):
    """In-memory engine recording every call.

    Args:
        latency: Seconds each inference sleeps
        fail_load: Make load() raise ModelLoadError
        fail_every: Make every n-th inference call raise InferenceError
    """

    def __init__(self, latency: float = 0.002, fail_load: bool = False, fail_every: int = 0):
        self.latency = latency
        self.fail_load = fail_load
        self.fail_every = fail_every
        self.load_calls = 0
        self.infer_calls = 0
        self.failures = 0
        self.released = []

    @property
    def successes(self) -> int:
        return self.infer_calls - self.failures

    async def load(self, locator):
        self.load_calls += 1
        await asyncio.sleep(0)
        if self.fail_load:
            raise ModelLoadError(f"{locator}: corrupt archive")
        return ModelHandle(
            name=Path(locator).stem,
            module=object(),
            input_schema=[MultiArrayField("x", (2, 2)), DoubleField("scale")],
        )

    async def infer(self, handle, inputs):
        self.infer_calls += 1
        await asyncio.sleep(self.latency)
        if self.fail_every and self.infer_calls % self.fail_every == 0:
            self.failures += 1
            raise InferenceError("input shape mismatch")
        return inputs

    def release(self, handle):
        self.released.append(handle.name)
        super().release(handle)


class ScaleAdd(torch.nn.Module):
    def forward(self, x: torch.Tensor, scale: float) -> torch.Tensor:
        return x * scale + 1


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def fast_config():
    """Sub-second phase durations."""
    return BenchmarkConfig(
        warmup_duration=0.05,
        cooldown_duration=0.05,
        process_duration=0.1,
        inter_run_pause=0.02,
        cooldown_interval=0.01,
    )


@pytest.fixture
def model_info(tmp_path):
    return ModelInfo(name="resnet", locator=tmp_path / "resnet.pt")


@pytest.fixture
def scripted_model_dir(tmp_path):
    """Directory holding a TorchScript model with an embedded input schema."""
    schema = [
        {"name": "x", "type": "multi_array", "shape": [2, 3], "dtype": "float32"},
        {"name": "scale", "type": "double"},
    ]
    models_dir = tmp_path / "models"
    models_dir.mkdir()
    torch.jit.save(
        torch.jit.script(ScaleAdd()),
        str(models_dir / "scale_add.pt"),
        _extra_files={SCHEMA_FILE: orjson.dumps(schema).decode()},
    )
    return models_dir
