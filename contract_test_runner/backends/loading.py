"""Discovery of backends registered as entry points."""

import logging
from importlib.metadata import entry_points
from typing import Any

from contract_test_runner.backends.manifest import BackendManifest
from contract_test_runner.errors import TestRunnerError

log = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "contract_test_runner.backends"


class BackendNotFoundError(TestRunnerError):
    """Raised when no usable backend is registered under a key."""


def load_backend_manifest(key: str) -> BackendManifest[Any]:
    """Resolve the backend manifest registered under ``key``.

    Raises:
        BackendNotFoundError: If the key is not registered, or its entry point
            does not point to a ``BackendManifest``

    """
    registered = entry_points(group=ENTRY_POINT_GROUP)
    if key not in registered.names:
        raise BackendNotFoundError(
            f"Backend '{key}' not found. Available backends: "
            f"{sorted(registered.names)}"
        )

    entry = registered[key]
    target = entry.load()
    if not isinstance(target, BackendManifest):
        raise BackendNotFoundError(
            f"Backend '{key}' ({entry.value}) is not a backend manifest."
        )

    log.debug("Loaded backend '%s' from %s", key, entry.value)
    return target
