"""Exception hierarchy for the test runner."""

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contract_test_runner.models.config import TestConfig
    from contract_test_runner.extraction import Diagnostic


class TestRunnerError(Exception):
    """Base class for errors that abort a test run."""

    __test__ = False


class AttributeUsageError(TestRunnerError):
    """Raised when test attributes on a function are malformed or misplaced.

    Carries every diagnostic produced for the function, and the configuration
    that could still be inferred from the well-formed attributes.
    """

    def __init__(
        self,
        diagnostics: Sequence["Diagnostic"],
        partial: "TestConfig | None" = None,
    ) -> None:
        self.diagnostics = tuple(diagnostics)
        self.partial = partial
        super().__init__("; ".join(str(d) for d in self.diagnostics))


class MockConfigError(TestRunnerError):
    """Raised when mocked addresses cannot be loaded or parsed."""


class CompilationError(TestRunnerError):
    """Raised when a backend cannot produce a program to test."""


class ExecutionError(TestRunnerError):
    """Raised when a backend cannot run a requested function at all."""


class FunctionNotFoundError(ExecutionError):
    """Raised when a test function is missing from the compiled program."""
