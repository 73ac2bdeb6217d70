#
# src/jaribu/engine.py
#
"""
Executes discovered test methods and classifies each invocation.

The body of a test is awaited and its completion is first described as a
``BodyOutcome`` (completed, raised or timed out) and only then turned into a
``TestResult``. No error raised by setup, body or cleanup escapes the
executor. A test that raises ``CancelledError`` fails like any other; only
cancellation of the run itself (Ctrl-C, shutdown) propagates.
"""
import asyncio
import time
import traceback
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeAlias

import structlog
from attrs import define

from jaribu.discovery import TestCallable, TestMethod, tags_match
from jaribu.protocols import ResultRenderer
from jaribu.results import TestOutcome, TestResult
from jaribu.state import RunProgress

log = structlog.get_logger("engine")

OUTCOME_EMOJI_KEYS = {
    TestOutcome.PASSED: "pass",
    TestOutcome.FAILED: "fail",
    TestOutcome.SKIPPED: "skip",
}


# --- Body outcomes ---
@define(frozen=True, slots=True)
class Completed:
    """The body finished without raising."""


@define(frozen=True, slots=True)
class Raised:
    """The body (or the call that created it) raised ``error``."""

    error: BaseException


@define(frozen=True, slots=True)
class TimedOut:
    """The body was still running when its timeout expired."""

    milliseconds: int


BodyOutcome: TypeAlias = Completed | Raised | TimedOut


def unwrap_error(error: BaseException) -> BaseException:
    """Reports the inner error of a single-member exception group."""
    if isinstance(error, ExceptionGroup) and len(error.exceptions) == 1:
        return error.exceptions[0]
    return error


def describe_error(error: BaseException) -> tuple[str, str]:
    """Returns ``("<Type>: <message>", <formatted traceback>)`` for ``error``."""
    inner = unwrap_error(error)
    message = f"{type(inner).__name__}: {inner}"
    stack_trace = "".join(traceback.format_exception(inner))
    return message, stack_trace


def timeout_message(milliseconds: int) -> str:
    return f"Timeout after {milliseconds}ms"


def tag_mismatch_message(filter_tag: str) -> str:
    return f"No matching tag '{filter_tag}'"


def _drain_abandoned(task: asyncio.Task) -> None:
    """Collects the outcome of a timed-out body so asyncio does not warn about it."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        log.debug(
            "Abandoned test body finished with an error",
            task=task.get_name(),
            error=f"{type(error).__name__}: {error}",
        )


def _propagate_runner_cancellation(error: BaseException) -> None:
    """Re-raises a ``CancelledError`` aimed at the task running the tests."""
    if not isinstance(error, asyncio.CancelledError):
        return
    task = asyncio.current_task()
    if task is not None and task.cancelling() > 0:
        raise error


class TestExecutor:
    """
    Runs test methods of one class, one invocation at a time.
    """

    __test__ = False

    def __init__(
        self,
        renderer: ResultRenderer | None = None,
        progress: RunProgress | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.renderer = renderer
        self.progress = progress if progress is not None else RunProgress()
        self._clock = clock

    async def run_method(
        self,
        method: TestMethod,
        filter_tag: str | None = None,
        setup: TestCallable | None = None,
        cleanup: TestCallable | None = None,
    ) -> list[TestResult]:
        """
        Runs every invocation of ``method`` and returns their results.

        Skipped methods (by marker or tag mismatch) produce a single result
        and never reach setup or cleanup.
        """
        if method.skip is not None:
            return [self._emit_skip(method, method.skip.reason)]

        if not tags_match(method.tags, filter_tag):
            return [self._emit_skip(method, tag_mismatch_message(filter_tag))]

        results = []
        for parameters in method.parameter_sets():
            result = await self.run_invocation(method, parameters, setup, cleanup)
            results.append(result)
        return results

    async def run_invocation(
        self,
        method: TestMethod,
        parameters: tuple[Any, ...] = (),
        setup: TestCallable | None = None,
        cleanup: TestCallable | None = None,
    ) -> TestResult:
        """Setup, body, cleanup for a single parameter set."""
        self.progress.start_test(method.name)
        if self.renderer:
            self.renderer.test_started(method.name, parameters or None)

        result = None
        if setup is not None:
            try:
                await setup()
            except (Exception, asyncio.CancelledError) as e:
                _propagate_runner_cancellation(e)
                message, stack_trace = describe_error(e)
                log.warning("Setup failed", test=method.name, error=message)
                result = TestResult.failed(
                    method.name, timedelta(0), message, stack_trace, parameters
                )

        if result is None:
            started = self._clock()
            outcome = await self.invoke_body(method, parameters)
            elapsed = timedelta(seconds=self._clock() - started)
            result = self.classify(method.name, outcome, elapsed, parameters)

        if cleanup is not None:
            result = await self._run_cleanup(cleanup, result)

        self._record(result)
        return result

    async def invoke_body(
        self, method: TestMethod, parameters: tuple[Any, ...] = ()
    ) -> BodyOutcome:
        """
        Awaits the test body, racing it against the method's timeout.

        A body that loses the race is sent a cancellation request and is no
        longer awaited. Bodies stuck in blocking, non-async work ignore the
        request and keep running in the background.
        """
        try:
            awaitable = method.func(*parameters)
        except Exception as e:
            return Raised(e)

        if method.timeout is None:
            try:
                await awaitable
            except (Exception, asyncio.CancelledError) as e:
                _propagate_runner_cancellation(e)
                return Raised(e)
            return Completed()

        task = asyncio.ensure_future(awaitable)
        try:
            done, _ = await asyncio.wait({task}, timeout=method.timeout.seconds)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task not in done:
            task.cancel()
            task.add_done_callback(_drain_abandoned)
            log.debug(
                "Test body exceeded timeout",
                test=method.name,
                timeout_ms=method.timeout.milliseconds,
                emoji_key="time",
            )
            return TimedOut(method.timeout.milliseconds)

        try:
            task.result()
        except (Exception, asyncio.CancelledError) as e:
            _propagate_runner_cancellation(e)
            return Raised(e)
        return Completed()

    @staticmethod
    def classify(
        name: str,
        outcome: BodyOutcome,
        duration: timedelta,
        parameters: tuple[Any, ...] = (),
    ) -> TestResult:
        match outcome:
            case Completed():
                return TestResult.passed(name, duration, parameters)
            case TimedOut(milliseconds=ms):
                return TestResult.failed(name, duration, timeout_message(ms), None, parameters)
            case Raised(error=error):
                message, stack_trace = describe_error(error)
                return TestResult.failed(name, duration, message, stack_trace, parameters)
        raise TypeError(f"Unknown body outcome: {outcome!r}")

    async def _run_cleanup(self, cleanup: TestCallable, result: TestResult) -> TestResult:
        try:
            await cleanup()
        except (Exception, asyncio.CancelledError) as e:
            _propagate_runner_cancellation(e)
            message, stack_trace = describe_error(e)
            if result.outcome is TestOutcome.PASSED:
                log.warning("Cleanup failed after passing test", test=result.name, error=message)
                return TestResult.failed(
                    result.name, result.duration, message, stack_trace, result.parameters
                )
            log.warning("Cleanup failed after failing test", test=result.name, error=message)
        return result

    def _emit_skip(self, method: TestMethod, reason: str) -> TestResult:
        result = TestResult.skipped(method.name, reason)
        self.progress.start_test(method.name)
        if self.renderer:
            self.renderer.test_started(method.name)
        self._record(result)
        return result

    def _record(self, result: TestResult) -> None:
        self.progress.record(result)
        if self.renderer:
            self.renderer.test_finished(result)
        log.debug(
            "Test finished",
            test=result.name,
            outcome=result.outcome.value,
            duration_s=result.duration.total_seconds(),
            emoji_key=OUTCOME_EMOJI_KEYS[result.outcome],
        )


# 🔼⚙️
