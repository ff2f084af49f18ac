"""Models for test execution outcomes and the run summary."""

from collections.abc import Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True, kw_only=True)
class RunSuccess:
    """Function returned normally with these values."""

    values: Sequence[int] = ()


@dataclass(frozen=True, kw_only=True)
class RunPanic:
    """Function panicked with this payload."""

    values: Sequence[int] = ()


type RunOutcome = RunSuccess | RunPanic


@dataclass(frozen=True, kw_only=True)
class RunResult:
    """Result of running one function on the virtual machine."""

    value: RunOutcome
    gas_counter: int | None = None


@dataclass(frozen=True, kw_only=True)
class Passed:
    """Outcome matched the expectation."""


@dataclass(frozen=True, kw_only=True)
class Failed:
    """Outcome did not match the expectation."""

    outcome: RunOutcome


@dataclass(frozen=True, kw_only=True)
class Ignored:
    """Test was skipped."""


type TestStatus = Passed | Failed | Ignored


@dataclass(frozen=True, kw_only=True)
class TestsSummary:
    """Names of the tests per verdict.

    ``failed_run_results[i]`` is the outcome of ``failed[i]``. The order of the
    names follows completion order and carries no meaning.
    """

    __test__ = False

    passed: Sequence[str] = field(default_factory=list)
    failed: Sequence[str] = field(default_factory=list)
    ignored: Sequence[str] = field(default_factory=list)
    failed_run_results: Sequence[RunOutcome] = field(default_factory=list)
