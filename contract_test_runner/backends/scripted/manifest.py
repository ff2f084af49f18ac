"""Scripted backend manifest."""

from contract_test_runner.backends.manifest import BackendManifest
from contract_test_runner.backends.scripted.backend import ScriptedBackend
from contract_test_runner.backends.scripted.config import ScriptedBackendConfig

scripted_manifest = BackendManifest(
    config_cls=ScriptedBackendConfig,
    backend_factory=ScriptedBackend.from_config,
)
