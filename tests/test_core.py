"""
Tests for the power-bench core building blocks.
"""

import asyncio
import math

import pytest
import torch

from power_bench.core.cancellation import CancellationToken
from power_bench.core.config import BenchmarkConfig
from power_bench.core.device_info import DeviceInfo
from power_bench.core.metrics import MetricsCollector, SessionStatistics
from power_bench.core.phases import PHASE_WEIGHTS, Phase, PhaseTimer
from power_bench.core.state import ModelInfo, RunRequest, RunState


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestDeviceInfo:
    """Tests for DeviceInfo class."""

    @pytest.fixture
    def device_info(self):
        return DeviceInfo()

    def test_cuda_availability(self, device_info):
        assert device_info.cuda_available == torch.cuda.is_available()

    def test_resolve_auto(self, device_info):
        expected = "cuda" if torch.cuda.is_available() else "cpu"
        assert device_info.resolve_device("auto").type == expected

    def test_resolve_cpu(self, device_info):
        assert device_info.resolve_device("cpu") == torch.device("cpu")

    def test_get_system_info(self, device_info):
        info = device_info.get_system_info()

        assert "platform" in info
        assert "python_version" in info
        assert info["pytorch_version"] == torch.__version__

    @pytest.mark.skipif(torch.cuda.is_available(), reason="CUDA available")
    def test_power_usage_without_gpu(self, device_info):
        assert device_info.get_power_usage() is None

    @pytest.mark.cuda
    @pytest.mark.skipif(not torch.cuda.is_available(), reason="CUDA not available")
    def test_invalid_device_id(self, device_info):
        with pytest.raises(ValueError, match="Invalid device ID"):
            device_info.get_device_info(device_info.device_count + 10)


class TestPhaseTimer:
    """Tests for PhaseTimer."""

    def test_progress_is_linear(self):
        clock = FakeClock()
        timer = PhaseTimer(10.0, clock=clock)
        timer.start()

        clock.now += 2.5
        assert timer.elapsed == pytest.approx(2.5)
        assert timer.fraction == pytest.approx(0.25)
        assert timer.remaining == pytest.approx(7.5)
        assert not timer.expired

    def test_clamped_after_target(self):
        clock = FakeClock()
        timer = PhaseTimer(1.0, clock=clock)
        timer.start()

        clock.now += 3.0
        assert timer.expired
        assert timer.fraction == 1.0
        assert timer.remaining == 0.0

    @pytest.mark.parametrize("target", [0.0, -5.0])
    def test_non_positive_target_expires_immediately(self, target):
        timer = PhaseTimer(target, clock=FakeClock())
        timer.start()

        assert timer.expired
        assert timer.fraction == 1.0
        assert timer.remaining == 0.0

    def test_not_started(self):
        timer = PhaseTimer(5.0, clock=FakeClock())
        assert not timer.started
        assert timer.elapsed == 0.0
        assert timer.remaining == 5.0


class TestPhase:
    def test_descriptions(self):
        assert Phase.IDLE.description == "Ready to start"
        assert Phase.COOLDOWN.description == "Cooling down..."
        assert Phase.COMPLETED.description == "Completed"

    def test_active_phases(self):
        assert [p for p in Phase if p.is_active] == [
            Phase.WARMUP,
            Phase.COOLDOWN,
            Phase.PROCESS,
        ]

    def test_weights_cover_a_run(self):
        offset, width = PHASE_WEIGHTS[Phase.PROCESS]
        assert offset + width == pytest.approx(1.0)
        assert sum(w for _, w in PHASE_WEIGHTS.values()) == pytest.approx(1.0)


class TestMetricsCollector:
    """Tests for MetricsCollector class."""

    @pytest.fixture
    def metrics_collector(self):
        return MetricsCollector()

    def test_initialization(self, metrics_collector):
        assert metrics_collector.sample_count == 0
        assert metrics_collector.last_time is None

    def test_mean_of_empty_is_zero(self, metrics_collector):
        mean = metrics_collector.mean_latency()
        assert mean == 0.0
        assert not math.isnan(mean)

    def test_time_execution(self, metrics_collector):
        with metrics_collector.time_execution():
            sum(range(1000))

        assert metrics_collector.last_time is not None
        assert metrics_collector.last_time >= 0

    def test_time_execution_failure_leaves_no_time(self, metrics_collector):
        with pytest.raises(RuntimeError):
            with metrics_collector.time_execution():
                raise RuntimeError("boom")

        assert metrics_collector.last_time is None

    def test_negative_sample_rejected(self, metrics_collector):
        with pytest.raises(ValueError):
            metrics_collector.add_sample(-1.0)

    def test_summarize(self, metrics_collector):
        for latency in (1.0, 2.0, 3.0, 4.0):
            metrics_collector.add_sample(latency)

        stats = metrics_collector.summarize(total_inferences=10)

        assert stats.total_inferences == 10
        assert stats.sample_count == 4
        assert stats.mean_latency == pytest.approx(2.5)
        assert stats.min_latency == 1.0
        assert stats.max_latency == 4.0
        assert stats.p50_latency == pytest.approx(2.5)
        assert stats.throughput == pytest.approx(400.0)

    def test_summarize_empty(self, metrics_collector):
        stats = metrics_collector.summarize(total_inferences=7)

        assert stats == SessionStatistics(total_inferences=7)
        assert stats.mean_latency == 0.0
        assert stats.throughput == 0.0

    def test_clear_samples(self, metrics_collector):
        metrics_collector.add_sample(1.0)
        metrics_collector.add_power_sample(30.0)
        metrics_collector.clear_samples()
        assert metrics_collector.get_samples() == []
        assert metrics_collector.mean_power() is None

    def test_power_samples(self, metrics_collector):
        assert metrics_collector.mean_power() is None

        metrics_collector.add_sample(2.0)
        for watts in (100.0, 120.0, 140.0):
            metrics_collector.add_power_sample(watts)

        assert metrics_collector.mean_power() == pytest.approx(120.0)
        assert metrics_collector.summarize(total_inferences=1).mean_power == pytest.approx(
            120.0
        )


class TestConfigAndState:
    def test_config_defaults(self):
        config = BenchmarkConfig()

        assert config.warmup_duration == 6.0
        assert config.cooldown_duration == 12.0
        assert config.process_duration == 42.0
        assert config.inter_run_pause == 2.0
        assert config.cooldown_interval == 0.1
        assert config.power_sample_interval == 1.0

    def test_config_rejects_non_positive_interval(self):
        with pytest.raises(ValueError, match="cooldown_interval"):
            BenchmarkConfig(cooldown_interval=0)

    def test_run_request_validation(self, tmp_path):
        model = ModelInfo("m", tmp_path / "m.pt")

        with pytest.raises(ValueError, match="run_count"):
            RunRequest(model=model, run_count=0)
        with pytest.raises(ValueError, match="model"):
            RunRequest(model=None, run_count=1)

    def test_snapshot_is_a_copy(self):
        state = RunState()
        snapshot = state.snapshot()
        snapshot.progress = 0.5

        assert state.progress == 0.0
        assert snapshot.phase is Phase.IDLE


class TestCancellationToken:
    @pytest.mark.asyncio
    async def test_sleep_runs_full_interval(self):
        token = CancellationToken()
        assert await token.sleep(0.01) is False
        assert not token.cancelled

    @pytest.mark.asyncio
    async def test_cancel_wakes_sleeper(self):
        token = CancellationToken()
        sleeper = asyncio.ensure_future(token.sleep(10.0))
        await asyncio.sleep(0)

        token.cancel()

        assert await asyncio.wait_for(sleeper, timeout=1.0) is True

    @pytest.mark.asyncio
    async def test_sleep_after_cancel_returns_immediately(self):
        token = CancellationToken()
        token.cancel()
        assert await token.sleep(10.0) is True


if __name__ == "__main__":
    pytest.main([__file__])
