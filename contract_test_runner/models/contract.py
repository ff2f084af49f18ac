"""Compiled contract metadata, as collected by the compiler."""

from collections.abc import Mapping

from pydantic import Field

from contract_test_runner.models.base import Model


class FunctionId(Model):
    """Identity of a compiled function."""

    id: int = 0
    debug_name: str | None = Field(
        default=None,
        description="Fully qualified name, e.g. 'pkg::ERC20::__external::transfer'",
    )


class ContractInfo(Model):
    """Entry points of one compiled contract."""

    class_hash: int
    constructor: FunctionId | None = None
    externals: Mapping[str, FunctionId] = Field(default_factory=dict)
    l1_handlers: Mapping[str, FunctionId] = Field(default_factory=dict)
