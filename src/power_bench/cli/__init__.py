"""
Command-line interface for power-bench.
"""

import asyncio
import functools
import logging
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from ..core.benchmark_controller import BenchmarkController
from ..core.config import BenchmarkConfig
from ..core.device_info import DeviceInfo
from ..core.phases import Phase
from ..core.state import ModelInfo, RunState
from ..inference.catalog import ModelCatalog
from ..inference.engine import TorchScriptEngine
from ..inference.synthesizer import InputSynthesizer

app = typer.Typer(
    help="Power Bench - Phased inference runs for power and latency measurement"
)
console = Console()

MODELS_DIR_OPTION = typer.Option(
    Path("models"),
    "--models-dir",
    "-m",
    envvar="POWER_BENCH_MODELS_DIR",
    help="Directory scanned for TorchScript models",
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def list_models(models_dir: Path = MODELS_DIR_OPTION) -> None:
    """List models available for benchmarking."""
    try:
        models = ModelCatalog(models_dir).discover()

        if not models:
            rprint(f"[yellow]No models found in {models_dir}[/yellow]")
            return

        table = Table(title="Available Models")
        table.add_column("Name", style="cyan")
        table.add_column("Path", style="green")

        for model in models:
            table.add_row(model.name, str(model.locator))

        console.print(table)

    except Exception as e:
        rprint(f"[red]Error listing models: {escape(str(e))}[/red]")


@app.command()
def device_info(
    device_id: int = typer.Option(0, "--device-id", "-d", help="GPU device ID")
) -> None:
    """Display compute device information."""
    try:
        DeviceInfo(console=console).print_device_info(device_id)
    except Exception as e:
        rprint(f"[red]Error getting device info: {escape(str(e))}[/red]")


@app.command()
def run(
    model: str = typer.Argument(..., help="Name of the model to benchmark"),
    models_dir: Path = MODELS_DIR_OPTION,
    runs: int = typer.Option(1, "--runs", "-n", min=1, help="Number of runs"),
    warmup: float = typer.Option(6.0, "--warmup", help="Warmup duration in seconds"),
    cooldown: float = typer.Option(
        12.0, "--cooldown", help="Cooldown duration in seconds"
    ),
    process: float = typer.Option(
        42.0, "--process", help="Measured process duration in seconds"
    ),
    pause: float = typer.Option(2.0, "--pause", help="Pause between runs in seconds"),
    device: str = typer.Option("auto", "--device", help="auto, cpu, cuda or cuda:N"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for dummy inputs"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Benchmark a model through warmup, cooldown and process phases."""
    _configure_logging(verbose)

    model_info = ModelCatalog(models_dir).find(model)
    if model_info is None:
        rprint(f"[red]Unknown model: {model}[/red]")
        raise typer.Exit(code=1)

    try:
        config = BenchmarkConfig(
            warmup_duration=warmup,
            cooldown_duration=cooldown,
            process_duration=process,
            inter_run_pause=pause,
        )
        device_helper = DeviceInfo(console=console)
        engine = TorchScriptEngine(device=device, device_info=device_helper)
        power_monitor = None
        if engine.device.type == "cuda":
            power_monitor = functools.partial(
                device_helper.get_power_usage, engine.device.index or 0
            )

        controller = BenchmarkController(
            engine=engine,
            synthesizer=InputSynthesizer(seed=seed),
            config=config,
            power_monitor=power_monitor,
        )

        if verbose:
            rprint(f"[blue]Running {runs} run(s) of {model} on {device}[/blue]")

        state = asyncio.run(_run_with_progress(controller, model_info, runs))
    except Exception as e:
        rprint(f"[red]Error running benchmark: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if state.error_message:
        rprint(f"[red]{escape(state.error_message)}[/red]")

    if state.phase is Phase.COMPLETED:
        _print_statistics_table(state)
    else:
        raise typer.Exit(code=1)


async def _run_with_progress(
    controller: BenchmarkController, model: ModelInfo, runs: int
) -> RunState:
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        TextColumn("{task.fields[detail]}"),
        console=console,
    ) as progress:
        task_id = progress.add_task(Phase.IDLE.description, total=1.0, detail="")

        def on_change(state: RunState) -> None:
            detail = (
                f"run {state.current_run}/{state.total_runs} "
                f"| {state.inference_count} inferences "
                f"| {state.time_remaining:4.1f}s left"
            )
            if state.phase is Phase.PROCESS and state.power_draw is not None:
                detail += f" | {state.power_draw:.1f} W"
            progress.update(
                task_id,
                completed=state.progress,
                description=state.phase.description,
                detail=detail,
            )

        controller.add_listener(on_change)
        try:
            await controller.start(model, runs)
        except asyncio.CancelledError:
            controller.stop()
            raise
        finally:
            controller.remove_listener(on_change)

    return controller.state


def _print_statistics_table(state: RunState) -> None:
    """Print the session statistics."""
    stats = state.statistics
    table = Table(title="Benchmark Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="yellow")

    table.add_row("Runs", str(state.total_runs))
    table.add_row("Total inferences", str(state.total_inferences))
    table.add_row("Average latency", f"{state.average_latency:.3f} ms")
    if stats is not None and stats.sample_count:
        table.add_row("Samples", str(stats.sample_count))
        table.add_row("Std dev", f"{stats.std_dev:.3f} ms")
        table.add_row("Min / Max", f"{stats.min_latency:.3f} / {stats.max_latency:.3f} ms")
        table.add_row("p50 / p95", f"{stats.p50_latency:.3f} / {stats.p95_latency:.3f} ms")
        table.add_row("Throughput", f"{stats.throughput:.1f} inferences/s")
    if stats is not None and stats.mean_power is not None:
        table.add_row("Mean power", f"{stats.mean_power:.1f} W")

    console.print(table)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
