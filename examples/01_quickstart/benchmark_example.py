"""
Quickstart Example: Benchmarking a TorchScript Model

This example walks through a complete, shortened benchmark session:
- Exporting a small model with an embedded input schema
- Discovering it with the model catalog
- Running warmup, cooldown and process phases
- Reading the published state and final statistics
"""

import asyncio
import tempfile
from pathlib import Path

import orjson
import torch

from power_bench import BenchmarkConfig, BenchmarkController, ModelCatalog, TorchScriptEngine
from power_bench.inference.engine import SCHEMA_FILE


class TinyConvNet(torch.nn.Module):
    def __init__(self):
        super().__init__()
        self.conv = torch.nn.Conv2d(3, 8, kernel_size=3, padding=1)
        self.head = torch.nn.Linear(8, 10)

    def forward(self, image: torch.Tensor) -> torch.Tensor:
        features = torch.relu(self.conv(image)).mean(dim=(2, 3))
        return self.head(features)


def export_model(models_dir: Path) -> None:
    """Save TinyConvNet as TorchScript with its input schema."""
    schema = [{"name": "image", "type": "image", "width": 64, "height": 64}]
    torch.jit.save(
        torch.jit.script(TinyConvNet()),
        str(models_dir / "tiny_convnet.pt"),
        _extra_files={SCHEMA_FILE: orjson.dumps(schema).decode()},
    )
    print(f"  Exported model to {models_dir}")


async def run_benchmark(models_dir: Path) -> None:
    models = ModelCatalog(models_dir).discover()
    print(f"  Found models: {[m.name for m in models]}")

    # shortened phases, the defaults are 6s / 12s / 42s
    config = BenchmarkConfig(
        warmup_duration=1.0,
        cooldown_duration=1.0,
        process_duration=3.0,
        inter_run_pause=0.5,
    )
    controller = BenchmarkController(TorchScriptEngine(device="auto"), config=config)

    last_phase = None

    def on_change(state):
        nonlocal last_phase
        if state.phase != last_phase:
            last_phase = state.phase
            print(
                f"  [run {state.current_run}/{state.total_runs}] "
                f"{state.phase.description:<16} progress {state.progress:5.1%}"
            )

    controller.add_listener(on_change)
    await controller.start(models[0], run_count=2)

    state = controller.state
    stats = state.statistics
    print("\n  Results:")
    print(f"    Total inferences: {state.total_inferences}")
    print(f"    Average latency:  {state.average_latency:.3f} ms")
    print(f"    p95 latency:      {stats.p95_latency:.3f} ms")
    print(f"    Throughput:       {stats.throughput:.1f} inferences/s")


def main():
    print("=" * 60)
    print("POWER BENCH: Quickstart")
    print("=" * 60)

    with tempfile.TemporaryDirectory() as tmp:
        models_dir = Path(tmp)
        export_model(models_dir)
        asyncio.run(run_benchmark(models_dir))


if __name__ == "__main__":
    main()
