"""Tests for the parallel test execution engine."""

import logging
import random
import threading
import time

import pytest

from contract_test_runner.discovery import NamedTest
from contract_test_runner.engine import (
    SummaryAccumulator,
    TestExecutionEngine,
    TestFilter,
    filter_tests,
    resolve_status,
)
from contract_test_runner.errors import (
    ExecutionError,
    FunctionNotFoundError,
    MockConfigError,
)
from contract_test_runner.mock import MockAddressResolver, SimulatedState
from contract_test_runner.models.config import (
    AnyPanic,
    ExactPanic,
    ExpectPanics,
    ExpectSuccess,
    SingletonAddress,
    TestConfig,
)
from contract_test_runner.models.contract import ContractInfo, FunctionId
from contract_test_runner.models.result import (
    Failed,
    Ignored,
    Passed,
    RunPanic,
    RunResult,
    RunSuccess,
)
from contract_test_runner.testing.factories import NamedTestFactory
from contract_test_runner.testing.runner import StaticRunner


def named(name: str, **config: object) -> NamedTest:
    """Build a named test with the given configuration fields."""
    return NamedTest(name=name, config=TestConfig(**config))  # type: ignore[arg-type]


@pytest.fixture
def resolver() -> MockAddressResolver:
    """Resolver without contracts or global mocks."""
    return MockAddressResolver(contracts_info={})


class TestResolveStatus:
    """Tests for resolve_status function."""

    @pytest.mark.parametrize(
        ("expectation", "outcome", "passed"),
        [
            (ExpectSuccess(), RunSuccess(values=(1,)), True),
            (ExpectSuccess(), RunPanic(values=(1,)), False),
            (ExpectPanics(panic=AnyPanic()), RunPanic(values=(1,)), True),
            (ExpectPanics(panic=AnyPanic()), RunSuccess(), False),
            (ExpectPanics(panic=ExactPanic(values=(1, 2))), RunPanic(values=(1, 2)), True),
            (ExpectPanics(panic=ExactPanic(values=(1, 2))), RunPanic(values=(2, 1)), False),
            (ExpectPanics(panic=ExactPanic(values=(1,))), RunPanic(values=(1, 2)), False),
            (ExpectPanics(panic=ExactPanic(values=(1,))), RunSuccess(), False),
        ],
    )
    def test_verdict(
        self,
        expectation: ExpectSuccess | ExpectPanics,
        outcome: RunSuccess | RunPanic,
        passed: bool,
    ) -> None:
        """Matches the outcome against the expectation."""
        status = resolve_status(expectation, outcome)

        if passed:
            assert status == Passed()
        else:
            assert status == Failed(outcome=outcome)

    def test_exact_compares_sequences_of_any_type(self) -> None:
        """Compares payloads element-wise regardless of container type."""
        status = resolve_status(
            ExpectPanics(panic=ExactPanic(values=[1])), RunPanic(values=(1,))
        )

        assert status == Passed()


class TestFilterTests:
    """Tests for filter_tests function."""

    def test_no_filter(self) -> None:
        """Keeps every test, ignored ones included."""
        tests = [named("a::test_one"), named("a::test_two", ignored=True)]

        filtered = filter_tests(tests, TestFilter())

        assert filtered.tests == tests
        assert filtered.filtered_out == 0

    def test_substring_filter(self) -> None:
        """Drops tests whose name lacks the substring and counts them."""
        tests = [
            named("pkg::foo::test_a"),
            named("pkg::bar::test_b"),
            named("pkg::test_foo_c", ignored=True),
            named("pkg::test_d"),
        ]

        filtered = filter_tests(tests, TestFilter(name_filter="foo"))

        assert [t.name for t in filtered.tests] == ["pkg::foo::test_a", "pkg::test_foo_c"]
        assert filtered.filtered_out == 2

    def test_ignored_only(self) -> None:
        """Keeps only the ignored tests."""
        tests = [named("test_a"), named("test_b", ignored=True)]

        filtered = filter_tests(tests, TestFilter(ignored_only=True))

        assert [t.name for t in filtered.tests] == ["test_b"]
        assert filtered.filtered_out == 1

    def test_include_ignored(self) -> None:
        """Un-ignores every test."""
        tests = [named("test_a"), named("test_b", ignored=True)]

        filtered = filter_tests(tests, TestFilter(include_ignored=True))

        assert [t.config.ignored for t in filtered.tests] == [False, False]
        assert filtered.filtered_out == 0
        assert tests[1].config.ignored is True

    def test_include_ignored_applies_before_ignored_only(self) -> None:
        """Keeps nothing when both modes are set, since nothing stays ignored."""
        tests = [named("test_a"), named("test_b", ignored=True)]

        filtered = filter_tests(
            tests, TestFilter(include_ignored=True, ignored_only=True)
        )

        assert filtered.tests == []
        assert filtered.filtered_out == 2


class TestSummaryAccumulator:
    """Tests for SummaryAccumulator."""

    def test_sorts_verdicts(self) -> None:
        """Files each name under its verdict, with aligned failure outcomes."""
        accumulator = SummaryAccumulator()
        accumulator.add("a", Passed())
        accumulator.add("b", Failed(outcome=RunPanic(values=(2,))))
        accumulator.add("c", Ignored())
        accumulator.add("d", Failed(outcome=RunSuccess()))

        summary = accumulator.finish()

        assert summary.passed == ["a"]
        assert summary.failed == ["b", "d"]
        assert summary.ignored == ["c"]
        assert summary.failed_run_results == [RunPanic(values=(2,)), RunSuccess()]

    def test_logs_each_verdict(self, caplog: pytest.LogCaptureFixture) -> None:
        """Logs one line per test."""
        accumulator = SummaryAccumulator()

        with caplog.at_level(logging.INFO):
            accumulator.add("pkg::test_a", Passed())
            accumulator.add("pkg::test_b", Failed(outcome=RunSuccess()))
            accumulator.add("pkg::test_c", Ignored())

        assert "test pkg::test_a ... ok" in caplog.text
        assert "test pkg::test_b ... fail" in caplog.text
        assert "test pkg::test_c ... ignored" in caplog.text

    def test_first_error_wins(self) -> None:
        """Raises the first fatal error and drops later results."""
        accumulator = SummaryAccumulator()
        first = ExecutionError("first")
        accumulator.add("a", Passed())
        accumulator.add_error(first)
        accumulator.add_error(ExecutionError("second"))
        accumulator.add("b", Passed())

        with pytest.raises(ExecutionError) as exc_info:
            accumulator.finish()

        assert exc_info.value is first


class TestExecutionEngineRun:
    """Tests for TestExecutionEngine.run_tests."""

    async def test_no_tests(self, resolver: MockAddressResolver) -> None:
        """Returns an empty summary."""
        engine = TestExecutionEngine(runner=StaticRunner(), resolver=resolver)

        summary = await engine.run_tests([])

        assert summary.passed == []
        assert summary.failed == []
        assert summary.ignored == []

    async def test_counts_verdicts(self, resolver: MockAddressResolver) -> None:
        """Counts passed, failed and ignored tests whatever the order."""
        tests = [
            named("test_ok"),
            named("test_fail", expectation=ExpectPanics()),
            named("test_panics", expectation=ExpectPanics()),
            named("test_skipped", ignored=True),
        ]
        runner = StaticRunner(
            outcomes={
                "test_ok": RunSuccess(),
                "test_fail": RunSuccess(values=(5,)),
                "test_panics": RunPanic(values=(1,)),
                "test_skipped": RunSuccess(),
            }
        )
        engine = TestExecutionEngine(runner=runner, resolver=resolver, max_workers=4)

        summary = await engine.run_tests(tests)

        assert set(summary.passed) == {"test_ok", "test_panics"}
        assert summary.failed == ["test_fail"]
        assert summary.ignored == ["test_skipped"]
        assert summary.failed_run_results == [RunSuccess(values=(5,))]

    async def test_ignored_tests_never_run(self, resolver: MockAddressResolver) -> None:
        """Reports ignored tests without running them."""
        runner = StaticRunner(outcomes={"test_a": RunSuccess()})
        engine = TestExecutionEngine(runner=runner, resolver=resolver)

        summary = await engine.run_tests([named("test_a", ignored=True)])

        assert summary.ignored == ["test_a"]
        assert runner.runs == []

    async def test_exact_panic_mismatch_is_reported(
        self, resolver: MockAddressResolver
    ) -> None:
        """Keeps the actual panic payload of a failed test."""
        runner = StaticRunner(outcomes={"test_a": RunPanic(values=(2,))})
        engine = TestExecutionEngine(runner=runner, resolver=resolver)

        summary = await engine.run_tests(
            [named("test_a", expectation=ExpectPanics(panic=ExactPanic(values=(1,))))]
        )

        assert summary.failed == ["test_a"]
        assert summary.failed_run_results == [RunPanic(values=(2,))]

    async def test_passes_gas_budget(self, resolver: MockAddressResolver) -> None:
        """Runs each test with its own gas budget."""
        runner = StaticRunner(outcomes={"test_a": RunSuccess(), "test_b": RunSuccess()})
        engine = TestExecutionEngine(runner=runner, resolver=resolver)

        await engine.run_tests([named("test_a", available_gas=100), named("test_b")])

        gas = {name: available_gas for name, available_gas, _ in runner.runs}
        assert gas == {"test_a": 100, "test_b": None}

    async def test_many_tests_aggregate_deterministically(
        self, resolver: MockAddressResolver
    ) -> None:
        """Produces the same counts for N tests, K failing and I ignored."""
        total, failing, ignored = 60, 7, 5
        tests = []
        outcomes = {}
        for i in range(total):
            name = f"pkg::test_{i}"
            tests.append(named(name, ignored=i >= total - ignored))
            outcomes[name] = RunPanic(values=(i,)) if i < failing else RunSuccess()

        class ShuffledRunner(StaticRunner):
            def run_function(
                self, function: str, available_gas: int | None, state: SimulatedState
            ) -> RunResult:
                time.sleep(random.uniform(0, 0.005))
                return super().run_function(function, available_gas, state)

        engine = TestExecutionEngine(
            runner=ShuffledRunner(outcomes=outcomes), resolver=resolver, max_workers=8
        )

        summary = await engine.run_tests(tests)

        assert len(summary.passed) == total - failing - ignored
        assert len(summary.failed) == failing
        assert len(summary.ignored) == ignored
        assert len(summary.failed_run_results) == len(summary.failed)
        for name, outcome in zip(summary.failed, summary.failed_run_results, strict=True):
            assert outcome == RunPanic(values=(int(name.rsplit("_", 1)[1]),))

    async def test_runs_in_parallel(self, resolver: MockAddressResolver) -> None:
        """Runs tests concurrently on several worker threads."""
        barrier = threading.Barrier(3, timeout=5)

        class BarrierRunner(StaticRunner):
            def run_function(
                self, function: str, available_gas: int | None, state: SimulatedState
            ) -> RunResult:
                barrier.wait()
                return super().run_function(function, available_gas, state)

        runner = BarrierRunner(outcomes={f"t{i}": RunSuccess() for i in range(3)})
        engine = TestExecutionEngine(runner=runner, resolver=resolver, max_workers=3)

        summary = await engine.run_tests([named(f"t{i}") for i in range(3)])

        assert sorted(summary.passed) == ["t0", "t1", "t2"]

    async def test_each_test_gets_its_own_state(self) -> None:
        """Builds a separate simulated state per test, with its own mocks."""
        resolver = MockAddressResolver(
            contracts_info={
                10: ContractInfo(
                    class_hash=10,
                    constructor=FunctionId(debug_name="pkg::Oracle::__constructor::c"),
                )
            },
            mocked_addresses={"Oracle": SingletonAddress(address="1")},
        )
        runner = StaticRunner(outcomes={"test_a": RunSuccess(), "test_b": RunSuccess()})
        engine = TestExecutionEngine(runner=runner, resolver=resolver)

        await engine.run_tests(
            [
                named("test_a", mocks={"Oracle": SingletonAddress(address="2")}),
                named("test_b"),
            ]
        )

        states = {name: state for name, _, state in runner.runs}
        assert states["test_a"].contract_addresses == {2: 10}
        assert states["test_b"].contract_addresses == {1: 10}
        assert states["test_a"] is not states["test_b"]

    async def test_missing_function_is_fatal(
        self, resolver: MockAddressResolver
    ) -> None:
        """Raises instead of summarizing when a function cannot be found."""
        runner = StaticRunner(outcomes={"test_a": RunSuccess()})
        engine = TestExecutionEngine(runner=runner, resolver=resolver)

        with pytest.raises(FunctionNotFoundError, match="test_missing"):
            await engine.run_tests([named("test_a"), named("test_missing")])

    async def test_fatal_error_waits_for_dispatched_tests(
        self, resolver: MockAddressResolver
    ) -> None:
        """Lets every dispatched test finish before raising the error."""
        outcomes: dict[str, RunSuccess | Exception] = {
            f"test_{i}": RunSuccess() for i in range(10)
        }
        outcomes["test_3"] = ExecutionError("setup failed")
        runner = StaticRunner(outcomes=outcomes)
        engine = TestExecutionEngine(runner=runner, resolver=resolver, max_workers=2)

        with pytest.raises(ExecutionError, match="setup failed"):
            await engine.run_tests([named(name) for name in outcomes])

        assert runner.run_names == set(outcomes)

    async def test_unexpected_runner_error_is_wrapped(
        self, resolver: MockAddressResolver
    ) -> None:
        """Wraps unexpected backend exceptions in an ExecutionError."""
        runner = StaticRunner(outcomes={"test_a": RuntimeError("vm crashed")})
        engine = TestExecutionEngine(runner=runner, resolver=resolver)

        with pytest.raises(ExecutionError, match="Failed to run the function `test_a`") as exc_info:
            await engine.run_tests([named("test_a")])

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_invalid_test_mock_is_fatal(self) -> None:
        """Raises MockConfigError for an unparsable per-test address."""
        resolver = MockAddressResolver(
            contracts_info={
                10: ContractInfo(
                    class_hash=10,
                    constructor=FunctionId(debug_name="pkg::Oracle::__constructor::c"),
                )
            }
        )
        runner = StaticRunner(outcomes={"test_a": RunSuccess()})
        engine = TestExecutionEngine(runner=runner, resolver=resolver)

        with pytest.raises(MockConfigError, match="0xnope"):
            await engine.run_tests(
                [named("test_a", mocks={"Oracle": SingletonAddress(address="0xnope")})]
            )

    async def test_factory_built_tests_pass(
        self, resolver: MockAddressResolver
    ) -> None:
        """Runs default configurations as success tests."""
        tests = NamedTestFactory.batch(5)
        runner = StaticRunner(outcomes={t.name: RunSuccess() for t in tests})
        engine = TestExecutionEngine(runner=runner, resolver=resolver)

        summary = await engine.run_tests(tests)

        assert sorted(summary.passed) == sorted(t.name for t in tests)
