"""Scripted backend module."""

from contract_test_runner.backends.scripted.backend import ScriptedBackend, ScriptedRunner
from contract_test_runner.backends.scripted.config import ScriptedBackendConfig
from contract_test_runner.backends.scripted.manifest import scripted_manifest

__all__ = [
    "ScriptedBackend",
    "ScriptedBackendConfig",
    "ScriptedRunner",
    "scripted_manifest",
]
