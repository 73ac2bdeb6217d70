#
# src/jaribu/runner.py
#
"""
High-level entry points: run one test class, or every registered class.
"""
import inspect
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

import structlog

from jaribu.cleaning import RunfileCleaner
from jaribu.config import RunnerConfig, resolve_filter_tag
from jaribu.discovery import (
    CLEANUP_NAME,
    SETUP_NAME,
    class_is_excluded,
    discover_tests,
    display_class_name,
    find_lifecycle_hook,
)
from jaribu.engine import TestExecutor
from jaribu.markers import clean_requested
from jaribu.protocols import Cleaner, ResultRenderer
from jaribu.registry import TestRegistry
from jaribu.rendering import ResultsRenderer
from jaribu.results import TestResult, TestRunSummary, TestSuiteSummary
from jaribu.state import RunProgress, RunStatus
from jaribu.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runner")

EMPTY_REGISTRY_WARNING = "No test classes registered. Use register_tests() to register test classes."


def _source_file(cls: type) -> Path | None:
    try:
        source = inspect.getsourcefile(cls)
    except TypeError:
        return None
    return Path(source) if source else None


class TestRunner:
    """
    Discovers, runs and reports the tests of one or more classes.

    Runs are strictly sequential. A runner (and its registry) must not be
    used from several threads or overlapping event-loop tasks at once.
    """

    __test__ = False

    def __init__(
        self,
        registry: TestRegistry | None = None,
        renderer: ResultRenderer | None = None,
        cleaner: Cleaner | None = None,
        config: RunnerConfig | None = None,
    ):
        self.config = config or RunnerConfig()
        self.registry = registry if registry is not None else TestRegistry()
        self.renderer = renderer or ResultsRenderer(max_message_width=self.config.max_message_width)
        self.cleaner = cleaner or RunfileCleaner(clean_command=self.config.clean_command)
        self.progress = RunProgress()

    # --- Registration ---
    def register_tests(self, cls: type) -> None:
        """Adds ``cls`` to the registry; registering twice has no effect."""
        self.registry.register(cls)

    def clear_registered_tests(self) -> None:
        self.registry.clear()

    # --- Single class ---
    async def run_tests(
        self,
        cls: type,
        clear_cache: bool | None = None,
        filter_tag: str | None = None,
    ) -> int:
        """Runs the tests of ``cls``. Returns 0 if none failed, else 1."""
        summary = await self.run_tests_with_results(cls, clear_cache, filter_tag)
        return 0 if summary.success else 1

    async def run_tests_with_results(
        self,
        cls: type,
        clear_cache: bool | None = None,
        filter_tag: str | None = None,
    ) -> TestRunSummary:
        """
        Runs every test of ``cls`` and returns the structured results.

        Args:
            cls: The test class.
            clear_cache: Clean the script's cache first. A ``@clean`` or
                ``@clear_runfile_cache`` marker on the class overrides it.
            filter_tag: Only run tests carrying this tag. Falls back to the
                configured tag, then the ``JARIBU_FILTER_TAG`` environment
                variable.
        """
        start_time = datetime.now(UTC)
        started = time.perf_counter()
        class_name = display_class_name(cls)
        self.progress.reset(class_name)

        filter_tag = resolve_filter_tag(
            filter_tag if filter_tag is not None else self.config.filter_tag
        )
        run_log = log.bind(test_class=cls.__name__, filter_tag=filter_tag)

        if class_is_excluded(cls, filter_tag):
            run_log.info("Test class excluded by tag filter")
            self.progress.update_status(RunStatus.FINISHED)
            return TestRunSummary.from_results(
                class_name, start_time, self._elapsed(started), ()
            )

        if self._should_clean(cls, clear_cache):
            self.progress.update_status(RunStatus.CLEANING)
            await self.cleaner.run_clean(_source_file(cls))

        self.progress.update_status(RunStatus.RUNNING)
        self.renderer.run_started(class_name, filter_tag)

        tests = discover_tests(cls)
        setup = find_lifecycle_hook(cls, SETUP_NAME)
        cleanup = find_lifecycle_hook(cls, CLEANUP_NAME)
        run_log.info(
            "Running test class",
            tests=len(tests),
            has_setup=setup is not None,
            has_cleanup=cleanup is not None,
            emoji_key="test",
        )

        executor = TestExecutor(renderer=self.renderer, progress=self.progress)
        results: list[TestResult] = []
        for method in tests:
            results.extend(await executor.run_method(method, filter_tag, setup, cleanup))

        summary = TestRunSummary.from_results(
            class_name, start_time, self._elapsed(started), results
        )
        self.progress.update_status(RunStatus.FINISHED)
        run_log.info(
            "Test class finished",
            passed=summary.passed_count,
            failed=summary.failed_count,
            skipped=summary.skipped_count,
            duration_s=summary.total_duration.total_seconds(),
        )

        self.renderer.print_results_table(summary)
        return summary

    # --- Registered suite ---
    async def run_all_tests(
        self,
        clear_cache: bool | None = None,
        filter_tag: str | None = None,
    ) -> int:
        """Runs every registered class. Returns 0 if none failed, else 1."""
        summary = await self.run_all_tests_with_results(clear_cache, filter_tag)
        return 0 if summary.success else 1

    async def run_all_tests_with_results(
        self,
        clear_cache: bool | None = None,
        filter_tag: str | None = None,
    ) -> TestSuiteSummary:
        """Runs the registered classes in registration order."""
        if not len(self.registry):
            log.warning("Suite run requested with no registered test classes")
            self.renderer.warn(EMPTY_REGISTRY_WARNING)
            return TestSuiteSummary.empty()

        start_time = datetime.now(UTC)
        started = time.perf_counter()
        class_results = []
        for cls in self.registry:
            class_results.append(
                await self.run_tests_with_results(cls, clear_cache, filter_tag)
            )

        suite = TestSuiteSummary.from_class_results(
            start_time, self._elapsed(started), class_results
        )
        log.info(
            "Test suite finished",
            classes=len(class_results),
            total=suite.total_tests,
            failed=suite.failed_count,
            success=suite.success,
        )

        if len(class_results) > 1:
            self.renderer.print_suite_summary_table(suite)
        return suite

    async def run_clean(self, path: Path | str | None = None) -> bool:
        """Cleans the cache of the script at ``path`` (default: the running script)."""
        return await self.cleaner.run_clean(path)

    # --- Helpers ---
    def _should_clean(self, cls: type, clear_cache: bool | None) -> bool:
        """Class marker first, then the argument, then config, defaulting to False."""
        marker = clean_requested(cls)
        if marker is not None:
            return marker
        if clear_cache is not None:
            return clear_cache
        return bool(self.config.clear_cache)

    @staticmethod
    def _elapsed(started: float) -> timedelta:
        return timedelta(seconds=time.perf_counter() - started)


# 🔼⚙️
