"""Compile a project, run its tests, and summarize them."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from contract_test_runner.backends.base import TestBackend
from contract_test_runner.discovery import find_all_tests
from contract_test_runner.engine import TestExecutionEngine, TestFilter, filter_tests
from contract_test_runner.mock import MockAddressResolver, load_mocked_addresses
from contract_test_runner.models.result import TestsSummary

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class RunReport:
    """Summary of a run, with the counts needed for reporting."""

    summary: TestsSummary
    filtered_out: int
    total: int

    @property
    def ok(self) -> bool:
        """Whether no test failed."""
        return not self.summary.failed


@dataclass(frozen=True, kw_only=True)
class TestRunner:
    """Runs the tests of one project with a backend."""

    __test__ = False

    backend: TestBackend
    path: Path
    test_filter: TestFilter = field(default_factory=TestFilter)
    libs: Mapping[str, Path] = field(default_factory=dict)
    starknet: bool = False
    show_mocks: bool = False
    max_workers: int | None = None

    async def run(self) -> RunReport:
        """Compile the project, then run and summarize its tests.

        Raises:
            CompilationError: If the backend cannot compile the project
            MockConfigError: If mocked addresses are malformed
            ExecutionError: If a test function cannot be run

        """
        mocked_addresses = load_mocked_addresses(self.path)

        log.info("Compiling %s", self.path)
        project = self.backend.compile(self.path, self.libs, starknet=self.starknet)

        discovered = find_all_tests(project.functions)
        if discovered.diagnostics:
            log.warning(
                "Skipping %d function(s) with invalid test attributes",
                len(discovered.diagnostics),
            )

        filtered = filter_tests(discovered.tests, self.test_filter)

        resolver = MockAddressResolver(
            contracts_info=project.contracts_info,
            mocked_addresses=mocked_addresses,
            show_mocks=self.show_mocks,
        )
        resolver.validate()

        engine = TestExecutionEngine(
            runner=project.runner,
            resolver=resolver,
            max_workers=self.max_workers,
        )
        summary = await engine.run_tests(filtered.tests)

        return RunReport(
            summary=summary,
            filtered_out=filtered.filtered_out,
            total=len(discovered.tests),
        )
