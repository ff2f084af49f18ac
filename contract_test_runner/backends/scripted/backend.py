"""Scripted backend implementation.

Replays a program description instead of compiling sources: every function
lists its attributes and the outcome of running it. The simulated state and
the gas budget still apply, so mocks and ``available_gas`` behave as they
would on a real virtual machine.
"""

import logging
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import ValidationError

from contract_test_runner.backends.base import (
    CompiledProject,
    FunctionAttributes,
    FunctionRunner,
    TestBackend,
)
from contract_test_runner.backends.scripted.config import ScriptedBackendConfig
from contract_test_runner.backends.scripted.models import (
    ScriptedFunction,
    ScriptedProgram,
)
from contract_test_runner.errors import (
    CompilationError,
    ExecutionError,
    FunctionNotFoundError,
    MockConfigError,
)
from contract_test_runner.felt import short_string_to_felt, to_felt
from contract_test_runner.mock import SimulatedState, address_from_string
from contract_test_runner.models.result import RunPanic, RunResult, RunSuccess

log = logging.getLogger(__name__)

OUT_OF_GAS = short_string_to_felt("Out of gas")
CONTRACT_NOT_DEPLOYED = short_string_to_felt("CONTRACT_NOT_DEPLOYED")


@dataclass(frozen=True, kw_only=True)
class ScriptedRunner(FunctionRunner[ScriptedFunction]):
    """Runs scripted functions against the simulated state."""

    functions: Mapping[str, ScriptedFunction] = field(default_factory=dict)

    def find_function(self, name: str) -> ScriptedFunction:
        """Look up a scripted function by name."""
        try:
            return self.functions[name]
        except KeyError:
            raise FunctionNotFoundError(f"Function `{name}` not found.") from None

    def run_function(
        self,
        function: ScriptedFunction,
        available_gas: int | None,
        state: SimulatedState,
    ) -> RunResult:
        """Replay the recorded outcome, unless gas or a contract is missing."""
        if available_gas is not None and function.gas_cost > available_gas:
            return RunResult(value=RunPanic(values=(OUT_OF_GAS,)), gas_counter=0)

        gas_counter = (
            available_gas - function.gas_cost if available_gas is not None else None
        )

        for address in function.requires_contracts:
            try:
                felt_address = address_from_string(address)
            except MockConfigError as exc:
                raise ExecutionError(
                    f"Invalid required contract address in `{function.name}`: {exc}"
                ) from exc
            if state.class_hash_at(felt_address) is None:
                log.debug("%s: no contract deployed at %s", function.name, address)
                return RunResult(
                    value=RunPanic(values=(CONTRACT_NOT_DEPLOYED,)),
                    gas_counter=gas_counter,
                )

        values = tuple(to_felt(v) for v in function.outcome.values)
        if function.outcome.kind == "panic":
            return RunResult(value=RunPanic(values=values), gas_counter=gas_counter)
        return RunResult(value=RunSuccess(values=values), gas_counter=gas_counter)


@dataclass(frozen=True, kw_only=True)
class ScriptedBackend(TestBackend):
    """Backend that loads a scripted program from the project directory."""

    config: ScriptedBackendConfig

    @classmethod
    @contextmanager
    def from_config(
        cls, config: ScriptedBackendConfig
    ) -> Generator["ScriptedBackend", None, None]:
        """Create backend from its configuration."""
        yield cls(config=config)

    def compile(
        self,
        path: Path,
        libs: Mapping[str, Path],
        starknet: bool = False,
    ) -> CompiledProject:
        """Load the program file of the project."""
        program = load_program(path / self.config.program_file)
        if libs:
            log.debug("Scripted programs are self-contained, ignoring libs: %s", libs)

        functions: dict[str, ScriptedFunction] = {}
        for function in program.functions:
            if function.name in functions:
                raise CompilationError(f"Duplicate function `{function.name}`.")
            functions[function.name] = function

        contracts_info = (
            {info.class_hash: info for info in program.contracts} if starknet else {}
        )

        return CompiledProject(
            functions=[
                FunctionAttributes(name=f.name, attributes=f.attributes)
                for f in program.functions
            ],
            contracts_info=contracts_info,
            runner=ScriptedRunner(functions=functions),
        )


def load_program(path: Path) -> ScriptedProgram:
    """Load and validate a scripted program file.

    Raises:
        CompilationError: If the file is missing, not YAML, or invalid

    """
    if not path.is_file():
        raise CompilationError(f"Program file not found: {path}")

    try:
        content = path.read_text()
    except (OSError, UnicodeDecodeError) as exc:
        raise CompilationError(f"Program file is not readable: {path}") from exc

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise CompilationError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        raise CompilationError(f"Empty program file: {path}")

    try:
        return ScriptedProgram.model_validate(data)
    except ValidationError as exc:
        raise CompilationError(f"Invalid program schema in {path}: {exc}") from exc
