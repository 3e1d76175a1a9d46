"""
Benchmark controller orchestrating warmup, cooldown and measured runs.
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional, Set

from ..inference.engine import InferenceEngine, ModelHandle
from ..inference.synthesizer import InputSynthesizer
from .cancellation import CancellationToken
from .config import BenchmarkConfig
from .errors import InferenceError, ModelLoadError
from .metrics import MetricsCollector
from .phases import PHASE_WEIGHTS, Phase, PhaseTimer
from .state import ModelInfo, RunRequest, RunState

logger = logging.getLogger(__name__)

StateListener = Callable[[RunState], None]


class _Session:
    """Everything owned by one start() call."""

    def __init__(self, request: RunRequest):
        self.request = request
        self.token = CancellationToken()
        self.metrics = MetricsCollector()
        self.handle: Optional[ModelHandle] = None
        self.last_power_time: Optional[float] = None

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled


class BenchmarkController:
    """Run a model through repeated warmup, cooldown and process phases.

    The controller is the only writer of its :class:`RunState`. Observers read
    copies through :attr:`state` or register a listener that receives a copy
    on every change. At most one session runs at a time.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        synthesizer: Optional[InputSynthesizer] = None,
        config: Optional[BenchmarkConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        power_monitor: Optional[Callable[[], Optional[float]]] = None,
    ):
        """Initialize benchmark controller.

        Args:
            engine: Engine that loads models and runs inference
            synthesizer: Input generator, a randomly seeded one by default
            config: Phase durations, defaults to BenchmarkConfig()
            clock: Monotonic clock in seconds used for phase timing
            power_monitor: Returns the current power draw in watts (or None),
                sampled during process phases
        """
        self.engine = engine
        self.synthesizer = synthesizer or InputSynthesizer()
        self.config = config or BenchmarkConfig()
        self._clock = clock
        self.power_monitor = power_monitor
        self._state = RunState()
        self._listeners: List[StateListener] = []
        self._session: Optional[_Session] = None
        self._task: Optional[asyncio.Task] = None
        # cancelled sessions may still be finishing an inference call
        self._retired: Set[asyncio.Task] = set()

    @property
    def state(self) -> RunState:
        return self._state.snapshot()

    def snapshot(self) -> RunState:
        """Get a copy of the current run state."""
        return self._state.snapshot()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with a state copy after every change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        self._listeners.remove(listener)

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self._state.snapshot())

    def start(self, model: ModelInfo, run_count: int = 1) -> asyncio.Task:
        """Start a benchmark session, cancelling any session in progress.

        Args:
            model: Model to benchmark
            run_count: Number of warmup/cooldown/process cycles

        Returns:
            The task running the session
        """
        request = RunRequest(model=model, run_count=run_count)
        loop = asyncio.get_running_loop()

        self._cancel_session()
        self._state = RunState(total_runs=run_count)

        session = _Session(request)
        self._session = session
        self._task = loop.create_task(self._run_session(session))
        self._publish()
        return self._task

    def stop(self) -> None:
        """Cancel the running session and return to idle.

        The last error message survives so it can still be shown.
        """
        self._cancel_session()
        self._state = RunState(error_message=self._state.error_message)
        self._publish()

    async def wait(self) -> None:
        """Wait for the current session task, if any, to finish."""
        if self._task is not None:
            await self._task

    def _cancel_session(self) -> None:
        if self._session is not None:
            logger.info("Cancelling benchmark of %s", self._session.request.model.name)
            self._session.token.cancel()
            self._session = None
        if self._task is not None and not self._task.done():
            self._retired.add(self._task)
            self._task.add_done_callback(self._retired.discard)
        self._task = None

    async def _run_session(self, session: _Session) -> None:
        request = session.request
        logger.info(
            "Starting test suite: %d run(s) of %s", request.run_count, request.model.name
        )

        try:
            handle = await self.engine.load(request.model.locator)
        except Exception as e:
            if isinstance(e, ModelLoadError):
                logger.error("Error loading model %s: %s", request.model.name, e)
            else:
                logger.exception("Error loading model %s", request.model.name)
            if not session.cancelled:
                self._state.error_message = f"Failed to load model: {e}"
                self._state.phase = Phase.IDLE
                self._publish()
            return

        session.handle = handle
        try:
            if session.cancelled:
                return
            logger.info("Model %s loaded", request.model.name)

            for run_index in range(1, request.run_count + 1):
                if session.cancelled:
                    return

                logger.info("Starting run %d of %d", run_index, request.run_count)
                await self._run_single_cycle(session, run_index)
                if session.cancelled:
                    return

                if run_index < request.run_count:
                    await self._pause_between_runs(session)

            self._complete(session)
        except Exception as e:
            logger.exception("Benchmark of %s failed", request.model.name)
            if not session.cancelled:
                self._state = RunState(error_message=str(e))
                self._publish()
            raise
        finally:
            self.engine.release(handle)
            session.handle = None

    def _complete(self, session: _Session) -> None:
        statistics = session.metrics.summarize(self._state.inference_count)

        self._state.phase = Phase.COMPLETED
        self._state.progress = 1.0
        self._state.time_remaining = 0.0
        self._state.total_inferences = statistics.total_inferences
        self._state.average_latency = statistics.mean_latency
        self._state.statistics = statistics
        self._publish()

        logger.info(
            "All tests completed. Total runs: %d, Total inferences: %d, "
            "Average time: %.2fms",
            session.request.run_count,
            statistics.total_inferences,
            statistics.mean_latency,
        )

    async def _pause_between_runs(self, session: _Session) -> None:
        logger.debug("Pausing %.1fs between runs", self.config.inter_run_pause)
        await session.token.sleep(self.config.inter_run_pause)

    async def _run_single_cycle(self, session: _Session, run_index: int) -> None:
        total_runs = session.request.run_count
        self._state.current_run = run_index
        self._state.progress = max(self._state.progress, (run_index - 1) / total_runs)
        self._publish()

        await self._run_phase(
            session, Phase.WARMUP, self.config.warmup_duration, self._warmup_step
        )
        if session.cancelled:
            return

        await self._run_phase(
            session, Phase.COOLDOWN, self.config.cooldown_duration, self._cooldown_step
        )
        if session.cancelled:
            return

        await self._run_phase(
            session, Phase.PROCESS, self.config.process_duration, self._process_step
        )
        if not session.cancelled:
            logger.info("Run %d completed", run_index)

    async def _run_phase(self, session: _Session, phase: Phase, duration: float, step) -> None:
        """Repeat ``step`` until ``duration`` seconds have elapsed.

        Args:
            session: Session being run
            phase: Phase to publish while looping
            duration: Target duration in seconds
            step: Coroutine function performing one iteration
        """
        timer = PhaseTimer(duration, clock=self._clock)
        count_before = self._state.inference_count

        self._state.phase = phase
        self._state.time_remaining = max(0.0, duration)
        self._publish()

        logger.info("Starting %s phase (%.1fs)", phase.value, duration)
        timer.start()

        while True:
            if session.cancelled:
                return
            if timer.expired:
                break

            await step(session)
            if session.cancelled:
                return

            self._update_progress(session, phase, timer)
            # let stop() interleave even if the engine never suspends
            await asyncio.sleep(0)

        logger.info(
            "%s phase complete. Inferences: %d",
            phase.value.capitalize(),
            self._state.inference_count - count_before,
        )

    def _update_progress(self, session: _Session, phase: Phase, timer: PhaseTimer) -> None:
        total_runs = session.request.run_count
        run_range = 1.0 / total_runs
        run_base = (self._state.current_run - 1) * run_range
        offset, width = PHASE_WEIGHTS[phase]

        progress = run_base + (offset + timer.fraction * width) * run_range
        self._state.progress = max(self._state.progress, min(progress, 1.0))
        self._state.time_remaining = min(self._state.time_remaining, timer.remaining)
        self._publish()

    async def _warmup_step(self, session: _Session) -> None:
        if await self._run_single_inference(session) is not None:
            self._state.inference_count += 1

    async def _cooldown_step(self, session: _Session) -> None:
        await session.token.sleep(self.config.cooldown_interval)

    async def _process_step(self, session: _Session) -> None:
        latency = await self._run_single_inference(session)
        if latency is not None:
            session.metrics.add_sample(latency)
            self._state.inference_count += 1
        self._sample_power(session)

    def _sample_power(self, session: _Session) -> None:
        if self.power_monitor is None or session.cancelled:
            return
        now = self._clock()
        if (
            session.last_power_time is not None
            and now - session.last_power_time < self.config.power_sample_interval
        ):
            return
        session.last_power_time = now

        watts = self.power_monitor()
        if watts is not None:
            session.metrics.add_power_sample(watts)
            self._state.power_draw = watts

    async def _run_single_inference(self, session: _Session) -> Optional[float]:
        """Run one inference on freshly synthesized inputs.

        Returns:
            Latency in milliseconds, or None if the call failed or the
            session was cancelled while it ran
        """
        handle = session.handle
        inputs = self.synthesizer.synthesize(handle.input_schema)

        try:
            with session.metrics.time_execution():
                await self.engine.infer(handle, inputs)
        except InferenceError as e:
            logger.warning("Inference error: %s", e)
            if not session.cancelled:
                self._state.error_message = f"Inference error: {e}"
            return None

        if session.cancelled:
            return None
        return session.metrics.last_time
