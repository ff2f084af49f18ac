"""Abstract interfaces of the compiler and virtual machine backends."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from contract_test_runner.mock import SimulatedState
from contract_test_runner.models.attribute import AttributeDescriptor
from contract_test_runner.models.contract import ContractInfo
from contract_test_runner.models.result import RunResult


@dataclass(frozen=True, kw_only=True)
class FunctionAttributes:
    """A compiled free function and the attributes attached to it."""

    name: str
    attributes: Sequence[AttributeDescriptor] = ()


class FunctionRunner[F](ABC):
    """Runs compiled functions on the virtual machine.

    Generic type F is the backend's handle for a compiled function. Runners
    are shared by every worker thread and must not keep per-run state.
    """

    @abstractmethod
    def find_function(self, name: str) -> F:
        """Look up a function by its fully qualified name.

        Raises:
            FunctionNotFoundError: If the program has no such function

        """

    @abstractmethod
    def run_function(
        self,
        function: F,
        available_gas: int | None,
        state: SimulatedState,
    ) -> RunResult:
        """Run a function without arguments.

        Args:
            function: Handle returned by find_function
            available_gas: Gas budget, or None for an unbounded run
            state: Simulated state owned by this run

        Returns:
            Whether the function returned or panicked, with its values

        Raises:
            ExecutionError: If the function cannot be run at all

        """


@dataclass(frozen=True, kw_only=True)
class CompiledProject:
    """Everything the runner needs from a compiled project."""

    functions: Sequence[FunctionAttributes]
    contracts_info: Mapping[int, ContractInfo] = field(default_factory=dict)
    runner: FunctionRunner


class TestBackend(ABC):
    """Compiles projects for testing."""

    __test__ = False

    @abstractmethod
    def compile(
        self,
        path: Path,
        libs: Mapping[str, Path],
        starknet: bool = False,
    ) -> CompiledProject:
        """Compile the project at the given path, with tests enabled.

        Args:
            path: Project root
            libs: Additional libraries, keyed by crate name
            starknet: Whether contracts and their entry points are compiled

        Raises:
            CompilationError: If the project does not compile

        """
