"""Discovery of test functions in a compiled project."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from contract_test_runner.backends.base import FunctionAttributes
from contract_test_runner.errors import AttributeUsageError
from contract_test_runner.extraction import Diagnostic, try_extract_test_config
from contract_test_runner.models.config import TestConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class NamedTest:
    """A test function and its configuration."""

    name: str
    config: TestConfig


@dataclass(frozen=True, kw_only=True)
class FunctionDiagnostics:
    """Diagnostics reported for one function."""

    function: str
    diagnostics: Sequence[Diagnostic]


@dataclass(frozen=True, kw_only=True)
class DiscoveredTests:
    """Tests found in a project, and the functions with misused attributes."""

    tests: Sequence[NamedTest] = field(default_factory=list)
    diagnostics: Sequence[FunctionDiagnostics] = field(default_factory=list)


def find_all_tests(functions: Sequence[FunctionAttributes]) -> DiscoveredTests:
    """Extract the test configuration of every function.

    Functions with malformed test attributes are reported with their
    diagnostics and left out of the tests; they never stop the discovery of
    the other functions.
    """
    tests: list[NamedTest] = []
    diagnostics: list[FunctionDiagnostics] = []

    for function in functions:
        try:
            config = try_extract_test_config(function.attributes)
        except AttributeUsageError as exc:
            for diagnostic in exc.diagnostics:
                log.warning("%s: %s", function.name, diagnostic)
            diagnostics.append(
                FunctionDiagnostics(
                    function=function.name, diagnostics=exc.diagnostics
                )
            )
            continue

        if config is not None:
            tests.append(NamedTest(name=function.name, config=config))

    log.debug(
        "Discovered %d test(s) in %d function(s)", len(tests), len(functions)
    )
    return DiscoveredTests(tests=tests, diagnostics=diagnostics)
