"""Parallel execution of tests and aggregation of their verdicts."""

import asyncio
import dataclasses
import logging
import os
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from contract_test_runner.backends.base import FunctionRunner
from contract_test_runner.discovery import NamedTest
from contract_test_runner.errors import ExecutionError, TestRunnerError
from contract_test_runner.mock import MockAddressResolver
from contract_test_runner.models.config import (
    ExactPanic,
    ExpectSuccess,
    TestExpectation,
)
from contract_test_runner.models.result import (
    Failed,
    Ignored,
    Passed,
    RunOutcome,
    RunSuccess,
    TestsSummary,
    TestStatus,
)

log = logging.getLogger(__name__)

STATUS_LABELS = {
    Passed: "ok",
    Failed: "fail",
    Ignored: "ignored",
}


@dataclass(frozen=True, kw_only=True)
class TestFilter:
    """Selection of the tests to run."""

    __test__ = False

    name_filter: str = ""
    include_ignored: bool = False
    ignored_only: bool = False


@dataclass(frozen=True, kw_only=True)
class FilteredTests:
    """Tests left after filtering, and how many were filtered out."""

    tests: Sequence[NamedTest]
    filtered_out: int


def filter_tests(tests: Sequence[NamedTest], test_filter: TestFilter) -> FilteredTests:
    """Select the tests to schedule.

    Tests whose name lacks the filter substring are dropped. In
    include-ignored mode every test is un-ignored; in ignored-only mode only
    ignored tests are kept. Otherwise ignored tests stay scheduled and are
    reported as ignored without running.
    """
    selected: list[NamedTest] = []
    for test in tests:
        if test_filter.name_filter not in test.name:
            continue
        if test_filter.include_ignored and test.config.ignored:
            test = dataclasses.replace(
                test, config=dataclasses.replace(test.config, ignored=False)
            )
        if test_filter.ignored_only and not test.config.ignored:
            continue
        selected.append(test)

    return FilteredTests(tests=selected, filtered_out=len(tests) - len(selected))


def resolve_status(expectation: TestExpectation, outcome: RunOutcome) -> TestStatus:
    """Compare the outcome of a run to what the test expects."""
    if isinstance(outcome, RunSuccess):
        if isinstance(expectation, ExpectSuccess):
            return Passed()
        return Failed(outcome=outcome)

    if isinstance(expectation, ExpectSuccess):
        return Failed(outcome=outcome)
    if isinstance(expectation.panic, ExactPanic) and tuple(outcome.values) != tuple(
        expectation.panic.values
    ):
        return Failed(outcome=outcome)
    return Passed()


@dataclass(kw_only=True)
class SummaryAccumulator:
    """Collects verdicts from concurrently completed tests.

    Merging holds the lock for a single result. Once a fatal error is recorded,
    later results are dropped and the error is raised from ``finish``.
    """

    _passed: list[str] = field(default_factory=list)
    _failed: list[str] = field(default_factory=list)
    _ignored: list[str] = field(default_factory=list)
    _failed_run_results: list[RunOutcome] = field(default_factory=list)
    _error: TestRunnerError | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add(self, name: str, status: TestStatus) -> None:
        """Record the verdict of one test."""
        with self._lock:
            if self._error is not None:
                return
            if isinstance(status, Passed):
                self._passed.append(name)
            elif isinstance(status, Failed):
                self._failed.append(name)
                self._failed_run_results.append(status.outcome)
            else:
                self._ignored.append(name)
            log.info("test %s ... %s", name, STATUS_LABELS[type(status)])

    def add_error(self, error: TestRunnerError) -> None:
        """Record a fatal error; only the first one is kept."""
        with self._lock:
            if self._error is None:
                self._error = error

    def finish(self) -> TestsSummary:
        """Build the summary, or raise the fatal error of the run."""
        with self._lock:
            if self._error is not None:
                raise self._error
            return TestsSummary(
                passed=list(self._passed),
                failed=list(self._failed),
                ignored=list(self._ignored),
                failed_run_results=list(self._failed_run_results),
            )


@dataclass(frozen=True, kw_only=True)
class TestExecutionEngine:
    """Runs independent tests in parallel on a thread pool."""

    __test__ = False

    runner: FunctionRunner
    resolver: MockAddressResolver
    max_workers: int | None = None

    async def run_tests(self, named_tests: Sequence[NamedTest]) -> TestsSummary:
        """Run every test and aggregate the verdicts.

        Args:
            named_tests: Filtered tests; ignored ones are reported, not run

        Returns:
            Summary of the run, in no particular order

        Raises:
            ExecutionError: If a test could not be run at all. Tests already
                dispatched still run to completion first.
            MockConfigError: If mocked addresses of a test cannot be parsed

        """
        log.info("running %d tests", len(named_tests))
        accumulator = SummaryAccumulator()
        if not named_tests:
            return accumulator.finish()

        workers = self.max_workers or os.cpu_count() or 1
        loop = asyncio.get_running_loop()

        with ThreadPoolExecutor(max_workers=workers) as executor:
            tasks = [
                loop.run_in_executor(executor, self._run_single, test)
                for test in named_tests
            ]
            for task in asyncio.as_completed(tasks):
                try:
                    name, status = await task
                except TestRunnerError as exc:
                    accumulator.add_error(exc)
                    continue
                accumulator.add(name, status)

        return accumulator.finish()

    def _run_single(self, test: NamedTest) -> tuple[str, TestStatus]:
        """Run one test on a worker thread, with its own simulated state."""
        if test.config.ignored:
            return test.name, Ignored()

        state = self.resolver.build_state(test.name, test.config.mocks)
        try:
            function = self.runner.find_function(test.name)
            result = self.runner.run_function(
                function, test.config.available_gas, state
            )
        except TestRunnerError:
            raise
        except Exception as exc:
            raise ExecutionError(f"Failed to run the function `{test.name}`.") from exc

        return test.name, resolve_status(test.config.expectation, result.value)
