"""Pydantic models for scripted program files."""

from collections.abc import Sequence
from typing import Literal

from pydantic import Field

from contract_test_runner.models.attribute import AttributeDescriptor
from contract_test_runner.models.base import Model
from contract_test_runner.models.contract import ContractInfo


class ScriptedOutcome(Model):
    """Recorded result of running a function."""

    kind: Literal["success", "panic"] = "success"
    values: Sequence[int] = Field(default_factory=tuple)


class ScriptedFunction(Model):
    """A compiled function, its attributes and how running it ends."""

    name: str = Field(..., description="Fully qualified name, e.g. 'pkg::tests::test_x'")
    attributes: Sequence[AttributeDescriptor] = Field(default_factory=tuple)
    outcome: ScriptedOutcome = Field(default_factory=ScriptedOutcome)
    gas_cost: int = Field(default=0, ge=0)
    requires_contracts: Sequence[str] = Field(
        default_factory=tuple,
        description="Addresses that must hold a contract for the run to succeed",
    )


class ScriptedProgram(Model):
    """Complete program description loaded from a YAML file."""

    version: Literal["1.0"] = Field(
        default="1.0", description="Program schema version"
    )
    functions: Sequence[ScriptedFunction] = Field(default_factory=tuple)
    contracts: Sequence[ContractInfo] = Field(default_factory=tuple)
