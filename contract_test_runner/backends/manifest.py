"""Backend manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from contract_test_runner.backends.base import TestBackend


@dataclass(frozen=True, kw_only=True)
class BackendManifest[ConfigT: BaseModel]:
    """Manifest describing a backend plugin.

    Holds the configuration class and the factory that opens a backend from a
    validated configuration, so backends are only imported when selected.
    """

    config_cls: type[ConfigT]
    backend_factory: Callable[[ConfigT], AbstractContextManager[TestBackend]]
